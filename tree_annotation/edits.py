"""Selection and edit algorithms over a forest.

Every operation takes a forest revision and returns a new one. Paths
handed in must come from the forest passed alongside them; after a
structural edit (combine, delete) callers re-derive paths from the
returned forest.

Combine algorithm:
1. Collect the paths of all selected nodes
2. Group them by parent path (roots share the empty parent path)
3. Sort each group by sibling index and split it into maximal runs of
   consecutive indices
4. Replace each run with a new unlabeled, unselected node whose children
   are the run's subtrees with their selection cleared
5. Apply groups deepest first and runs right to left, so no replacement
   shifts an index that a pending replacement still relies on

Delete algorithm:
- A selected inner node is replaced by its own children, closing the gap
  while keeping the token sequence intact.
- A selected leaf is removed only when no unselected leaf remains in the
  forest; otherwise it is kept and reported.
- An ancestor whose children are all deleted is deleted too (spliced like
  any inner node), cascading toward the root. An ancestor with an
  unselected child is kept.
- Paths are processed in reverse document order (right siblings and
  descendants first).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import replace

import structlog

from .tree import (
    Forest,
    Node,
    Path,
    get_children,
    get_node,
    iter_paths,
    leaf,
    map_nodes,
    replace_slice,
    selected_paths,
    update_node,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def toggle_select(forest: Forest, path: Sequence[int]) -> Forest:
    """Flip the ``selected`` flag of the node at ``path``.

    Raises:
        PathError: If ``path`` does not address a node.
    """
    return update_node(forest, path, lambda node: replace(node, selected=not node.selected))


def deselect_all(forest: Forest) -> Forest:
    """Clear the ``selected`` flag on every node."""
    return map_nodes(forest, lambda node: replace(node, selected=False) if node.selected else node)


# ---------------------------------------------------------------------------
# Combine
# ---------------------------------------------------------------------------


def _consecutive_runs(indices: list[int]) -> list[tuple[int, int]]:
    """Split sorted indices into maximal ``(start, stop)`` runs.

    >>> _consecutive_runs([0, 1, 3, 5, 6, 7])
    [(0, 2), (3, 4), (5, 8)]
    """
    runs: list[tuple[int, int]] = []
    for index in indices:
        if runs and runs[-1][1] == index:
            runs[-1] = (runs[-1][0], index + 1)
        else:
            runs.append((index, index + 1))
    return runs


def combine_selected(forest: Forest) -> Forest:
    """Combine every run of adjacent selected siblings under a new parent.

    Args:
        forest: Current forest.

    Returns:
        New forest. Identical to the input if nothing is selected.
    """
    paths = selected_paths(forest)
    if not paths:
        return forest

    groups: dict[Path, list[int]] = defaultdict(list)
    for path in paths:
        groups[path[:-1]].append(path[-1])

    created = 0
    for parent in sorted(groups, key=len, reverse=True):
        for start, stop in reversed(_consecutive_runs(sorted(groups[parent]))):
            run = get_children(forest, parent)[start:stop]
            wrapper = Node(label="", children=tuple(replace(n, selected=False) for n in run))
            forest = replace_slice(forest, parent, start, stop, (wrapper,))
            created += 1

    logger.debug("combine_selected", selected=len(paths), groups=len(groups), created=created)
    return forest


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def _all_leaves_selected(forest: Forest) -> bool:
    return all(node.selected for _, node in iter_paths(forest) if node.is_leaf)


def deletable(forest: Forest, path: Sequence[int]) -> bool:
    """Whether the node at ``path`` may be deleted.

    Inner nodes are always deletable. A leaf is deletable only if it is
    the last remaining leaf, i.e. every other leaf in the forest is
    selected for deletion too.

    Raises:
        PathError: If ``path`` does not address a node.
    """
    path = tuple(path)
    if not get_node(forest, path).is_leaf:
        return True
    return all(
        node.selected for other, node in iter_paths(forest) if node.is_leaf and other != path
    )


def _doomed_paths(forest: Forest, paths: list[Path], leaves_removable: bool) -> set[Path]:
    """Paths removed by a delete, including ancestors left with nothing unselected.

    An ancestor joins the set once every one of its children is in it,
    checked deepest ancestors first so the rule cascades toward the root.
    """
    doomed = {p for p in paths if leaves_removable or not get_node(forest, p).is_leaf}
    ancestors = {p[:i] for p in doomed for i in range(1, len(p))}
    for parent in sorted(ancestors, key=len, reverse=True):
        count = len(get_children(forest, parent))
        if all(parent + (i,) in doomed for i in range(count)):
            doomed.add(parent)
    return doomed


def delete_selected(forest: Forest) -> Forest:
    """Delete all selected nodes that pass the deletion guard.

    Inner nodes are replaced by their children. Leaves are removed only
    when every leaf of the forest is selected; blocked leaves stay in
    place (still selected) and are reported through a warning event.
    An ancestor whose children are all deleted is removed as well, so
    unselected siblings are never orphaned.

    Args:
        forest: Current forest.

    Returns:
        New forest. Identical to the input if nothing is selected.
    """
    paths = selected_paths(forest)
    if not paths:
        return forest

    leaves_removable = _all_leaves_selected(forest)
    doomed = _doomed_paths(forest, paths, leaves_removable)
    blocked = [p for p in paths if p not in doomed]

    for path in sorted(doomed, reverse=True):
        node = get_node(forest, path)
        forest = replace_slice(forest, path[:-1], path[-1], path[-1] + 1, node.children)

    if blocked:
        logger.warning(
            "delete_blocked",
            reason="only inner nodes or the last leaf can be deleted",
            paths=[list(p) for p in blocked],
        )
    logger.debug(
        "delete_selected",
        selected=len(paths),
        deleted=len(doomed),
        ancestors=len(doomed - set(paths)),
    )
    return forest


# ---------------------------------------------------------------------------
# Renaming
# ---------------------------------------------------------------------------


def _start(node: Node) -> Node:
    if node.renaming:
        return node
    return replace(node, renaming=True, label_before_rename=node.label)


def start_renaming(forest: Forest, path: Sequence[int]) -> Forest:
    """Open a rename edit box on the node at ``path``."""
    return update_node(forest, path, _start)


def start_renaming_selected(forest: Forest) -> Forest:
    """Open a rename edit box on every selected node."""
    return map_nodes(forest, lambda node: _start(node) if node.selected else node)


def set_label(forest: Forest, path: Sequence[int], text: str) -> Forest:
    """Replace the label of the node at ``path``. Any text is accepted."""
    return update_node(forest, path, lambda node: replace(node, label=text))


def stop_renaming(forest: Forest, path: Sequence[int]) -> Forest:
    """Confirm the current label and close the rename edit box."""

    def stop(node: Node) -> Node:
        if not node.renaming:
            return node
        return replace(node, renaming=False, label_before_rename=None)

    return update_node(forest, path, stop)


def cancel_renaming(forest: Forest, path: Sequence[int]) -> Forest:
    """Close the rename edit box and restore the label it started with."""

    def cancel(node: Node) -> Node:
        if not node.renaming:
            return node
        return replace(
            node,
            label=node.label_before_rename if node.label_before_rename is not None else node.label,
            renaming=False,
            label_before_rename=None,
        )

    return update_node(forest, path, cancel)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def set_leaves_from_tokens(tokens: Sequence[str]) -> Forest:
    """Create a fresh forest with one unselected leaf per token."""
    return tuple(leaf(token) for token in tokens)
