from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class Document(BaseModel):
    """A generated document as handed over by the site build."""

    url: str = Field(..., description="Public URL of the document, unique within a site")
    path: str = Field(..., description="Source location of the document")
    data: dict[str, Any] = Field(default_factory=dict, description="Front matter / template variables")


class Site(BaseModel):
    documents: list[Document] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict, description="Site-wide template data")
    destination: Path = Field(default=Path("_site"), description="Directory the site is written to")


class VersionedDocument(BaseModel):
    """A document whose URL carries a version segment."""

    model_config = ConfigDict(frozen=True)

    url: str
    path: str
    root: str = Field(..., description="URL prefix before the version segment, trailing '/' included")
    version: float = Field(..., description="Numeric sort key of the version")
    version_string: str = Field(..., description="Version token exactly as it appears in the URL")
    canonical: str = Field(..., description="root + remainder after the version segment")
    root_label: str | None = None


class CanonicalVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: float
    url: str


class RootVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: float
    version_string: str


class RootGroup(BaseModel):
    """Label and versions observed under one versioned root."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str | None = None
    # Templates read the list under "version"
    versions: tuple[RootVersion, ...] = Field(default=(), alias="version")

    def to_data(self) -> dict[str, Any]:
        return {
            "version": [v.model_dump() for v in self.versions],
            "label": self.label,
        }


CanonicalVersions = TypeAdapter(dict[str, list[CanonicalVersion]])


__all__ = [
    "CanonicalVersion",
    "CanonicalVersions",
    "Document",
    "RootGroup",
    "RootVersion",
    "Site",
    "ValidationError",
    "VersionedDocument",
]
