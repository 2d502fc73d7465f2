"""
Pydantic models for data model files and the model metadata (metamodel).

ModelMetadata is stored as App/models/{model}.metadata.json and uses
PascalCase keys.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_pascal

UNBOUNDED_MAX_OCCURS = 99999


class AltinnCoreFile(BaseModel):
    """A file in the app repository."""

    fileName: str
    filePath: str
    fileType: str
    repositoryRelativeUrl: str
    lastChanged: datetime | None = None


class Restriction(BaseModel):
    """A value restriction (XSD facet) on an element."""

    value: str

    model_config = {"alias_generator": to_pascal, "populate_by_name": True}


class ElementMetadata(BaseModel):
    """
    Metadata for one element in the data model tree.

    Groups are complex elements, Fields simple elements and Attributes
    XML attributes.
    """

    id: str = Field(alias="ID")
    parent_element: str | None = None
    type_name: str | None = None
    name: str
    data_binding_name: str | None = None
    x_path: str
    restrictions: dict[str, Restriction] = Field(default_factory=dict)
    type: Literal["Field", "Group", "Attribute"]
    xsd_value_type: str | None = None
    min_occurs: int = 1
    max_occurs: int = 1
    x_name: str
    is_read_only: bool = False
    is_tag_content: bool = False
    fixed_value: str | None = None
    nillable: bool = False
    json_schema_pointer: str
    display_string: str = ""

    model_config = {"alias_generator": to_pascal, "populate_by_name": True}


class ModelMetadata(BaseModel):
    """The complete metamodel for an app data model."""

    org: str | None = None
    service_name: str | None = None
    repository_name: str | None = None
    elements: dict[str, ElementMetadata] = Field(default_factory=dict)

    model_config = {"alias_generator": to_pascal, "populate_by_name": True}

    def root_element(self) -> ElementMetadata | None:
        """Get the first element without a parent."""
        return next(
            (e for e in self.elements.values() if e.parent_element is None), None
        )

    def children_of(self, element_id: str) -> list[ElementMetadata]:
        """Get the direct children of an element, in document order."""
        return [e for e in self.elements.values() if e.parent_element == element_id]
