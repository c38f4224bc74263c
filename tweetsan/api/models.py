from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class DocumentErrorOut(BaseModel):
    """Error object returned in place of a document that is not valid JSON."""

    error: str
    stacktrace: str


class HealthOut(BaseModel):
    """Service liveness and configuration summary."""

    ok: bool = True
    auth_required: bool = False
    field_count: int = 0


class FieldsIn(BaseModel):
    """A new field selection for the live allow-list.

    Either `fields` (a list of dotted paths) or `text` (keep-file syntax:
    comma/space/newline separated, "#" comments) must be given. `fields`
    wins when both are present.
    """

    fields: Optional[List[str]] = None
    text: Optional[str] = None
    skip_media: bool = False


class FieldsOut(BaseModel):
    """The allow-list currently used by the service."""

    fields: List[str] = Field(default_factory=list)
    skip_media: bool = False
    paths: List[str] = Field(default_factory=list)
    tree: Dict[str, Any] = Field(default_factory=dict)
