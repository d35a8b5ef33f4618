from .base import QWBaseModel, ScalarValue, SCALAR_TYPES, is_scalar

__all__ = ["QWBaseModel", "ScalarValue", "SCALAR_TYPES", "is_scalar"]
