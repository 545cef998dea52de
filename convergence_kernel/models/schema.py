"""Property definitions of resource kinds."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class PropertyType(str, Enum):
    STRING = "string"
    ENUM = "enum"
    BOOL = "bool"
    INTEGER = "integer"


class PropertyDefinition(BaseModel):
    """
    One declared property of a resource kind.

    `sensitive` values never reach logs or error messages verbatim.
    `name_property` values default to the resource's identity string.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: PropertyType = PropertyType.STRING
    default: Optional[Any] = None           # None means "no default"
    regex: Optional[str] = None             # re.search semantics
    equal_to: Optional[List[Any]] = None    # enum membership
    minimum: Optional[int] = None           # integers only, inclusive
    maximum: Optional[int] = None
    required: bool = False
    required_for: Optional[List[str]] = None   # required only for these actions
    sensitive: bool = False
    name_property: bool = False
    validation_message: Optional[str] = None
    description: str = ""

    @property
    def has_default(self) -> bool:
        return self.default is not None
