"""
Pydantic models for text resource documents.

A text resource file (App/config/texts/resource.{lang}.json) holds the
translations for one language as an ordered list of id/value pairs.
"""

from pydantic import BaseModel, Field


class TextResourceVariable(BaseModel):
    """A variable substituted into a text at runtime."""

    key: str
    dataSource: str
    defaultValue: str | None = None


class TextResourceElement(BaseModel):
    """A single text entry."""

    id: str
    value: str = ""
    variables: list[TextResourceVariable] | None = None

    model_config = {"extra": "allow"}


class TextResource(BaseModel):
    """All text entries for one language."""

    language: str | None = None
    resources: list[TextResourceElement] = Field(default_factory=list)

    model_config = {"extra": "allow"}

    def find(self, text_id: str) -> TextResourceElement | None:
        """Get the entry with the given id, if present."""
        return next((r for r in self.resources if r.id == text_id), None)


class TextIdMutation(BaseModel):
    """Rename (newId set) or remove (newId empty) a text id."""

    oldId: str
    newId: str | None = None


class ServiceNameRequest(BaseModel):
    """Request body for setting the app's display name."""

    serviceName: str
