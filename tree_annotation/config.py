"""Configuration for an annotation session.

Holds the export and import toggles of the annotation page: math mode
for inner nodes and leaves on QTree export, math stripping on QTree
import, JSON pretty-printing, and preview/link settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .link import DEFAULT_BASE_URL
from .renderer import DEFAULT_SCALE


class SessionOptions(BaseModel):
    """Export/import options of an annotation session."""

    math_inner: bool = Field(
        default=False,
        description="Wrap inner node labels in $...$ on QTree export",
    )
    math_leaves: bool = Field(
        default=False,
        description="Wrap leaf labels in $...$ on QTree export",
    )
    strip_math: bool = Field(
        default=False,
        description="Strip one surrounding $ pair from labels on QTree import",
    )
    pretty_json: bool = Field(
        default=False,
        description="Indent JSON export for display",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Annotation page that share links point to",
    )
    svg_scale: int = Field(
        default=DEFAULT_SCALE,
        ge=10,
        le=200,
        description="Preview pixels per grid cell",
    )
