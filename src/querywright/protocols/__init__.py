from .providers import EscapeProvider

__all__ = ["EscapeProvider"]
