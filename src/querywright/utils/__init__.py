"""Shared utilities."""

from querywright.utils.decorators import traced

__all__ = ["traced"]
