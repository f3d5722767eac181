"""Grid layout for tree previews.

Packs a forest into an integer grid, bottom-aligned:

- A leaf occupies one cell.
- An inner node reserves one row for its label and packs its children
  left to right underneath. A child of height ``h`` is shifted down by
  ``max_child_height - h`` so every child subtree ends on the same
  bottom row. Width is the sum of child widths.
- The label sits centered over the node's width at ``x + (w - 1) / 2``.
- The forest is packed like the children of an invisible parent that
  has no label row.

Edges connect each parent's label anchor to its children's label
anchors and are derived from the children's packed boxes, so lines
always meet labels where they are drawn.

Layout depends only on tree shape, never on label text.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from .tree import Forest, Node, Path

logger = structlog.get_logger(__name__)

# Grid margin (in cells) around the packed forest on every side
MARGIN = 1


@dataclass(frozen=True)
class Placement:
    """Box of one subtree in grid units.

    Attributes:
        x: Left column of the subtree.
        y: Top row of the subtree (the node's label row).
        w: Width of the subtree in columns.
        h: Height of the subtree in rows.
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def label_x(self) -> float:
        """Column of the label anchor, centered over the subtree."""
        return self.x + (self.w - 1) / 2

    @property
    def label_y(self) -> int:
        """Row of the label anchor."""
        return self.y


@dataclass(frozen=True)
class Edge:
    """Line from a parent's label anchor to a child's label anchor."""

    parent: Path
    child: Path
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class Layout:
    """Packed layout of a forest.

    Attributes:
        width: Total width in grid units.
        height: Total height in grid units.
        placements: Subtree box for every node, keyed by path.
        edges: Parent-to-child connecting lines in document order.
    """

    width: int = 0
    height: int = 0
    placements: dict[Path, Placement] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)

    def canvas_size(self, scale: float = 1) -> tuple[float, float]:
        """Drawing surface size including the margin on every side."""
        return ((self.width + 2 * MARGIN) * scale, (self.height + 2 * MARGIN) * scale)


def _measure(node: Node, sizes: dict[int, tuple[int, int]]) -> tuple[int, int]:
    """Compute ``(w, h)`` of a subtree, recording every size by object id."""
    if node.is_leaf:
        size = (1, 1)
    else:
        child_sizes = [_measure(child, sizes) for child in node.children]
        size = (sum(w for w, _ in child_sizes), 1 + max(h for _, h in child_sizes))
    sizes[id(node)] = size
    return size


def _pack_row(
    nodes: tuple[Node, ...], sizes: dict[int, tuple[int, int]]
) -> tuple[int, int, list[tuple[int, int]]]:
    """Pack sibling subtrees left to right with a shared bottom row.

    Returns:
        Tuple of (total width, max height, per-node (x, y) offsets).
    """
    max_h = max((sizes[id(n)][1] for n in nodes), default=0)
    offsets: list[tuple[int, int]] = []
    x = 0
    for node in nodes:
        w, h = sizes[id(node)]
        offsets.append((x, max_h - h))
        x += w
    return x, max_h, offsets


def _place(
    nodes: tuple[Node, ...],
    parent: Path,
    origin_x: int,
    origin_y: int,
    sizes: dict[int, tuple[int, int]],
    out: Layout,
) -> None:
    """Place a row of siblings at ``(origin_x, origin_y)``, recursively."""
    _, _, offsets = _pack_row(nodes, sizes)
    parent_box = out.placements.get(parent)
    for i, (node, (dx, dy)) in enumerate(zip(nodes, offsets)):
        path = parent + (i,)
        w, h = sizes[id(node)]
        box = Placement(x=origin_x + dx, y=origin_y + dy, w=w, h=h)
        out.placements[path] = box
        if parent_box is not None:
            out.edges.append(
                Edge(
                    parent=parent,
                    child=path,
                    x1=parent_box.label_x,
                    y1=parent_box.label_y,
                    x2=box.label_x,
                    y2=box.label_y,
                )
            )
        if not node.is_leaf:
            _place(node.children, path, box.x, box.y + 1, sizes, out)


def layout(forest: Forest) -> Layout:
    """Compute the grid layout of a forest.

    Args:
        forest: Forest to lay out (may be empty).

    Returns:
        Layout with overall size, one placement per node and one edge
        per parent-child pair. An empty forest yields a 0x0 layout.
    """
    sizes: dict[int, tuple[int, int]] = {}
    for root in forest:
        _measure(root, sizes)

    width, height, _ = _pack_row(tuple(forest), sizes)
    result = Layout(width=width, height=height)
    _place(tuple(forest), (), 0, 0, sizes, result)

    logger.debug(
        "layout_computed",
        roots=len(forest),
        width=width,
        height=height,
        nodes=len(result.placements),
    )
    return result
