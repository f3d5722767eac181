"""Tree annotation service -- FastAPI application.

Endpoints:
    POST /convert       -- Import a tree in any format, return all exports
    GET  /tree          -- Decode a share link (?tree=...), return all exports
    POST /edit          -- Combine or delete selected nodes of a tree
    POST /preview/svg   -- Render a tree preview as SVG
    POST /preview/png   -- Render a tree preview as PNG
    GET  /health        -- Health check

The service is stateless: every request carries its own tree.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Literal

import structlog
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .edits import combine_selected, delete_selected, set_leaves_from_tokens
from .errors import ParseError, PathError
from .json_codec import decode_json, encode_json, forest_to_data
from .link import DEFAULT_BASE_URL, decode_link, encode_link, tree_url
from .qtree import decode_qtree, encode_qtree
from .renderer import DEFAULT_SCALE, render_png, render_svg
from .tree import Forest, forest_leaves, update_node

structlog.configure(
    processors=[
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="tree-annotation",
    description="Build labeled trees over token sequences and export them as QTree, JSON or links",
    version=VERSION,
)


# --------------------------------------------------------------------------
# Request / Response models
# --------------------------------------------------------------------------


class TreeInput(BaseModel):
    """A tree in one of the supported input formats."""

    text: str = Field(
        ...,
        description="Tree text: space-separated tokens, QTree string, JSON or link payload",
        examples=["[.S  [.NP  the cat ] sat ]"],
    )
    format: Literal["tokens", "qtree", "json", "link"] = Field(
        default="qtree",
        description="Format of `text`",
    )
    strip_math: bool = Field(
        default=False,
        description="Strip one surrounding $ pair from QTree labels",
    )


class ExportOptions(BaseModel):
    """Options shared by every endpoint that returns exports."""

    math_inner: bool = Field(default=False, description="Wrap inner labels in $...$")
    math_leaves: bool = Field(default=False, description="Wrap leaf labels in $...$")
    pretty: bool = Field(default=False, description="Indent the JSON export")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Share link target page")


class ConvertRequest(TreeInput):
    """Request body for /convert."""

    export: ExportOptions = Field(default_factory=ExportOptions)


class EditRequest(BaseModel):
    """Request body for /edit."""

    tree: str = Field(
        ...,
        description="Tree as JSON (a node object or an array of nodes)",
        examples=['[{"label":"the"},{"label":"cat"},{"label":"sat"}]'],
    )
    selected: list[list[int]] = Field(
        default_factory=list,
        description="Paths of the selected nodes",
        examples=[[[0], [1]]],
    )
    operation: Literal["combine", "delete"] = Field(
        ...,
        description="Edit to apply to the selection",
    )
    export: ExportOptions = Field(default_factory=ExportOptions)


class PreviewRequest(TreeInput):
    """Request body for /preview/svg and /preview/png."""

    scale: int = Field(
        default=DEFAULT_SCALE,
        ge=10,
        le=200,
        description="Pixels per grid cell",
    )


class TreeResponse(BaseModel):
    """All exports of a tree."""

    qtree: str = Field(description="tikz-qtree string")
    json_text: str = Field(description="JSON export")
    tree: dict | list = Field(description="JSON export as structured data")
    link: str = Field(description="Base64 share-link payload")
    url: str = Field(description="Full share URL")
    roots: int = Field(description="Number of roots in the forest")
    leaves: list[str] = Field(description="Token sequence")
    complete: bool = Field(description="True if the forest is a single tree")


class HealthResponse(BaseModel):
    """Response body for /health."""

    status: str
    service: str
    version: str


# --------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------


def _decode_input(request: TreeInput) -> Forest:
    """Decode the request's tree, mapping parse failures to HTTP 422."""
    try:
        if request.format == "tokens":
            return set_leaves_from_tokens(request.text.split())
        if request.format == "qtree":
            return decode_qtree(request.text, strip_math=request.strip_math)
        if request.format == "json":
            return decode_json(request.text)
        return decode_link(request.text)
    except ParseError as e:
        logger.warning("tree_input_invalid", format=request.format, error=str(e))
        raise HTTPException(status_code=422, detail=str(e))


def _exports(forest: Forest, options: ExportOptions) -> TreeResponse:
    """Build every export, mapping unrepresentable labels to HTTP 422."""
    try:
        qtree = encode_qtree(forest, math_inner=options.math_inner, math_leaves=options.math_leaves)
    except ValueError as e:
        logger.warning("qtree_export_failed", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    return TreeResponse(
        qtree=qtree,
        json_text=encode_json(forest, pretty=options.pretty),
        tree=forest_to_data(forest),
        link=encode_link(forest),
        url=tree_url(forest, options.base_url),
        roots=len(forest),
        leaves=forest_leaves(forest),
        complete=len(forest) == 1,
    )


# --------------------------------------------------------------------------
# Endpoints
# --------------------------------------------------------------------------


@app.post("/convert", response_model=TreeResponse)
async def convert(request: ConvertRequest) -> TreeResponse:
    """Import a tree and return it in every export format."""
    forest = _decode_input(request)
    try:
        return _exports(forest, request.export)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("convert_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Conversion failed")


@app.get("/tree", response_model=TreeResponse)
async def tree_from_link(
    tree: str | None = Query(default=None, description="Base64 share-link payload"),
) -> TreeResponse:
    """Decode a share link. Without a ``tree`` parameter the forest is empty."""
    forest: Forest = ()
    if tree is not None:
        try:
            forest = decode_link(tree)
        except ParseError as e:
            logger.warning("tree_link_invalid", error=str(e))
            raise HTTPException(status_code=422, detail=str(e))
    return _exports(forest, ExportOptions())


@app.post("/edit", response_model=TreeResponse)
async def edit(request: EditRequest) -> TreeResponse:
    """Select the given paths, apply combine or delete, return the result."""
    try:
        forest = decode_json(request.tree)
        for path in request.selected:
            forest = update_node(forest, path, lambda node: replace(node, selected=True))
    except (ParseError, PathError) as e:
        logger.warning("edit_input_invalid", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))

    if request.operation == "combine":
        forest = combine_selected(forest)
    else:
        forest = delete_selected(forest)

    logger.info("tree_edited", operation=request.operation, selected=len(request.selected))
    return _exports(forest, request.export)


@app.post(
    "/preview/svg",
    response_class=Response,
    responses={
        200: {"content": {"image/svg+xml": {}}, "description": "SVG tree preview"},
        422: {"description": "Invalid input"},
    },
)
async def preview_svg(request: PreviewRequest) -> Response:
    """Render a tree preview as SVG."""
    forest = _decode_input(request)
    try:
        svg_content = render_svg(forest, scale=request.scale)
    except Exception as e:
        logger.error("preview_svg_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Rendering failed")

    return Response(content=svg_content, media_type="image/svg+xml")


@app.post(
    "/preview/png",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "PNG tree preview"},
        422: {"description": "Invalid input"},
    },
)
async def preview_png(request: PreviewRequest) -> Response:
    """Render a tree preview as PNG."""
    forest = _decode_input(request)
    try:
        png_bytes = render_png(forest, scale=request.scale)
    except Exception as e:
        logger.error("preview_png_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Rendering failed")

    return Response(content=png_bytes, media_type="image/png")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for Docker and load balancer probes."""
    return HealthResponse(
        status="healthy",
        service="tree-annotation",
        version=VERSION,
    )
