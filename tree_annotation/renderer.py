"""SVG and PNG preview rendering for annotation forests.

Draws the grid layout from ``layout.layout`` scaled to drawing units:

- one grid cell = ``scale`` pixels, with a one-cell margin on all sides
- connecting lines first, from each parent label to each child label
- labels on top, centered on their anchor, over a white flood filter
  so lines do not run through the text
- selected nodes and nodes on the path to a selection carry a CSS class
  (``selected`` / ``tree-selected``) for hosts that style the preview

The preview is a pure function of the forest; labels never change the
geometry.
"""

from __future__ import annotations

from html import escape

import structlog

from .layout import MARGIN, Layout, layout
from .tree import Forest, get_node, selection_status

logger = structlog.get_logger(__name__)

# Pixels per grid cell
DEFAULT_SCALE = 50

LINE_COLOR = "black"
LABEL_COLOR = "black"
SELECTED_COLOR = "#2B6CB0"
TREE_SELECTED_COLOR = "#90CDF4"


def _px(grid: float, scale: float) -> float:
    """Grid coordinate to drawing coordinate, including the margin."""
    return (grid + MARGIN) * scale


def render_svg(
    forest: Forest,
    scale: float = DEFAULT_SCALE,
    tree_layout: Layout | None = None,
) -> str:
    """Render a forest preview as an SVG string.

    Args:
        forest: Forest to draw.
        scale: Pixels per grid cell.
        tree_layout: Precomputed layout of ``forest``; computed if None.

    Returns:
        Complete SVG document as a string.
    """
    grid = tree_layout if tree_layout is not None else layout(forest)
    width, height = grid.canvas_size(scale)

    svg_parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" '
        f'width="{width:.0f}" height="{height:.0f}">',
        "  <defs>",
        '    <filter x="0" y="0" width="1" height="1" id="clear">',
        '      <feFlood flood-color="white"/>',
        '      <feComposite in="SourceGraphic"/>',
        "    </filter>",
        "  </defs>",
        f'  <rect width="{width:.0f}" height="{height:.0f}" fill="white"/>',
    ]

    for edge in grid.edges:
        svg_parts.append(
            f'  <line x1="{_px(edge.x1, scale):.1f}" y1="{_px(edge.y1, scale):.1f}" '
            f'x2="{_px(edge.x2, scale):.1f}" y2="{_px(edge.y2, scale):.1f}" '
            f'stroke="{LINE_COLOR}"/>'
        )

    for path, box in grid.placements.items():
        node = get_node(forest, path)
        status = selection_status(node)
        if status == "selected":
            fill, class_attr = SELECTED_COLOR, ' class="selected"'
        elif status == "tree-selected":
            fill, class_attr = TREE_SELECTED_COLOR, ' class="tree-selected"'
        else:
            fill, class_attr = LABEL_COLOR, ""
        svg_parts.append(
            f'  <text x="{_px(box.label_x, scale):.1f}" y="{_px(box.label_y, scale):.1f}" '
            f'text-anchor="middle" dominant-baseline="middle" '
            f'filter="url(#clear)" fill="{fill}"{class_attr}>{escape(node.label)}</text>'
        )

    svg_parts.append("</svg>")
    svg_content = "\n".join(svg_parts)

    logger.debug(
        "svg_rendered",
        nodes=len(grid.placements),
        edges=len(grid.edges),
        width=width,
        height=height,
    )

    return svg_content


def render_png(forest: Forest, scale: float = DEFAULT_SCALE) -> bytes:
    """Render a forest preview as a PNG image.

    Generates SVG first, then converts to PNG via CairoSVG.

    Args:
        forest: Forest to draw.
        scale: Pixels per grid cell.

    Returns:
        PNG image bytes.
    """
    import cairosvg

    grid = layout(forest)
    width, height = grid.canvas_size(scale)
    svg = render_svg(forest, scale, tree_layout=grid)
    png_bytes = cairosvg.svg2png(
        bytestring=svg.encode("utf-8"),
        output_width=int(width),
        output_height=int(height),
    )

    logger.debug("png_rendered", width=width, height=height, bytes=len(png_bytes))
    return png_bytes
