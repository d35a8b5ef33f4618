"""Base model class and shared type aliases."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

# Values that may be inlined into a statement as literals
ScalarValue = Optional[Union[bool, int, float, str]]

SCALAR_TYPES = (bool, int, float, str)


class QWBaseModel(BaseModel):
    """Base model for querywright value objects.

    Provides consistent configuration and ``to_dict()`` serialization.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        frozen=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to a plain dictionary."""
        return self.model_dump(by_alias=False)


def is_scalar(value: Any) -> bool:
    """True for bool/int/float/str values (None is not scalar)."""
    return isinstance(value, SCALAR_TYPES)
