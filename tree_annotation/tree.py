"""Tree data structures and path addressing for tree annotation.

A document is a forest: an ordered tuple of root nodes. Nodes are
addressed by paths, tuples of child indices where ``path[0]`` selects a
root and every further index selects a child of the previous node.

Nodes are frozen. Every change produces a new forest through
``update_node`` or ``replace_slice``, so a forest revision is always a
fully formed tree and a path is only meaningful against the revision it
was derived from.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, replace

from .errors import PathError

Path = tuple[int, ...]

# Deepest nesting of children accepted from decoded input
MAX_DEPTH = 200


@dataclass(frozen=True)
class Node:
    """A node in the annotation tree.

    Attributes:
        label: Arbitrary label text (may be empty).
        children: Child nodes, left to right. Empty for leaves.
        selected: Whether the node is currently selected.
        renaming: Whether a rename edit box is open for the node.
        label_before_rename: Label captured when renaming started,
            restored on cancel. None while the node is not renaming.
    """

    label: str = ""
    children: tuple[Node, ...] = ()
    selected: bool = False
    renaming: bool = False
    label_before_rename: str | None = None

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return len(self.children) == 0

    def leaves(self) -> Iterator[Node]:
        """Yield the leaves of this subtree left to right."""
        if self.is_leaf:
            yield self
            return
        for child in self.children:
            yield from child.leaves()


Forest = tuple[Node, ...]


def leaf(label: str) -> Node:
    """Create an unselected leaf node."""
    return Node(label=label)


def _check_index(nodes: Sequence[Node], index: int, path: Path) -> None:
    if not 0 <= index < len(nodes):
        raise PathError(path, f"Invalid path {list(path)}: index {index} out of range")


def get_node(forest: Forest, path: Sequence[int]) -> Node:
    """Return the node addressed by ``path``.

    Args:
        forest: Forest revision the path was derived from.
        path: Root index followed by child indices.

    Returns:
        The addressed node.

    Raises:
        PathError: If the path is empty or any index is out of range.
    """
    path = tuple(path)
    if not path:
        raise PathError(path, "Empty path does not address a node")

    nodes: Sequence[Node] = forest
    node = None
    for index in path:
        _check_index(nodes, index, path)
        node = nodes[index]
        nodes = node.children
    return node


def get_children(forest: Forest, parent_path: Sequence[int]) -> tuple[Node, ...]:
    """Return the children list under ``parent_path``.

    The empty parent path denotes the forest roots.

    Raises:
        PathError: If ``parent_path`` does not address a node.
    """
    if not parent_path:
        return tuple(forest)
    return get_node(forest, parent_path).children


def update_node(forest: Forest, path: Sequence[int], f: Callable[[Node], Node]) -> Forest:
    """Return a new forest with the node at ``path`` replaced by ``f(node)``.

    Nodes off the path are shared with the input forest.

    Raises:
        PathError: If the path is empty or any index is out of range.
    """
    path = tuple(path)
    if not path:
        raise PathError(path, "Empty path does not address a node")
    return _update_in(tuple(forest), path, path, f)


def _update_in(
    nodes: tuple[Node, ...], rest: Path, path: Path, f: Callable[[Node], Node]
) -> tuple[Node, ...]:
    """Recursive helper for update_node."""
    index = rest[0]
    _check_index(nodes, index, path)
    node = nodes[index]
    if len(rest) == 1:
        new_node = f(node)
    else:
        new_node = replace(node, children=_update_in(node.children, rest[1:], path, f))
    return nodes[:index] + (new_node,) + nodes[index + 1 :]


def replace_slice(
    forest: Forest,
    parent_path: Sequence[int],
    start: int,
    stop: int,
    new_nodes: Sequence[Node],
) -> Forest:
    """Replace ``children[start:stop]`` under ``parent_path`` with ``new_nodes``.

    This is the only structural edit: combine wraps a slice into one
    node, delete swaps a node for its children or for nothing.

    Args:
        forest: Forest to edit.
        parent_path: Path of the parent node, or ``()`` for the roots.
        start: First index of the slice.
        stop: One past the last index of the slice.
        new_nodes: Replacement nodes (any length, including zero).

    Returns:
        New forest.

    Raises:
        PathError: If the parent path is invalid or the slice bounds
            fall outside the children list.
    """
    parent_path = tuple(parent_path)
    siblings = get_children(forest, parent_path)
    if not 0 <= start <= stop <= len(siblings):
        raise PathError(
            parent_path + (start,),
            f"Invalid slice [{start}:{stop}] under {list(parent_path)} "
            f"with {len(siblings)} children",
        )
    new_children = siblings[:start] + tuple(new_nodes) + siblings[stop:]
    if not parent_path:
        return new_children
    return update_node(forest, parent_path, lambda node: replace(node, children=new_children))


def iter_paths(forest: Forest) -> Iterator[tuple[Path, Node]]:
    """Yield ``(path, node)`` pairs in document (pre-) order."""
    stack: list[tuple[Path, Node]] = [((i,), n) for i, n in enumerate(forest)]
    stack.reverse()
    while stack:
        path, node = stack.pop()
        yield path, node
        for i in range(len(node.children) - 1, -1, -1):
            stack.append((path + (i,), node.children[i]))


def selected_paths(forest: Forest) -> list[Path]:
    """Paths of all selected nodes in document order."""
    return [path for path, node in iter_paths(forest) if node.selected]


def has_selected_descendant(node: Node) -> bool:
    """True if any strict descendant of ``node`` is selected."""
    return any(child.selected or has_selected_descendant(child) for child in node.children)


def selection_status(node: Node) -> str:
    """Selection indicator for rendering a node.

    Returns:
        ``"selected"`` for a selected node, ``"tree-selected"`` for a node
        on the path from the root to a selected descendant, else ``""``.
    """
    if node.selected:
        return "selected"
    if has_selected_descendant(node):
        return "tree-selected"
    return ""


def map_nodes(forest: Forest, f: Callable[[Node], Node]) -> Forest:
    """Apply ``f`` to every node bottom-up, returning a new forest."""

    def visit(node: Node) -> Node:
        if node.is_leaf:
            return f(node)
        return f(replace(node, children=tuple(visit(c) for c in node.children)))

    return tuple(visit(node) for node in forest)


def forest_leaves(forest: Forest) -> list[str]:
    """Leaf labels of the whole forest, left to right."""
    return [lf.label for root in forest for lf in root.leaves()]
