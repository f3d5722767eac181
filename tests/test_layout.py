"""Tests for the grid layout engine."""

from tree_annotation.layout import Layout, Placement, layout
from tree_annotation.qtree import decode_qtree
from tree_annotation.tree import iter_paths, leaf


class TestLayoutBasics:
    def test_empty_forest(self):
        result = layout(())
        assert result.width == 0
        assert result.height == 0
        assert result.placements == {}
        assert result.edges == []

    def test_single_leaf(self):
        result = layout((leaf("a"),))
        assert (result.width, result.height) == (1, 1)
        assert result.placements == {(0,): Placement(x=0, y=0, w=1, h=1)}

    def test_leaves_side_by_side(self):
        result = layout((leaf("a"), leaf("b"), leaf("c")))
        assert (result.width, result.height) == (3, 1)
        assert [result.placements[(i,)].x for i in range(3)] == [0, 1, 2]
        assert all(p.y == 0 for p in result.placements.values())

    def test_every_node_placed(self):
        forest = decode_qtree("[.S  [.NP  the cat ] [.VP  sat [.PP  on [.NP  the mat ] ] ] ]")
        result = layout(forest)
        assert set(result.placements) == {path for path, _ in iter_paths(forest)}

    def test_deterministic(self):
        forest = decode_qtree("[.S  [.NP  the cat ] sat ] down")
        first = layout(forest)
        second = layout(forest)
        assert first == second

    def test_labels_do_not_affect_geometry(self):
        short = layout(decode_qtree("[.S  a b ] c"))
        long = layout(decode_qtree("[.Sentence  alpha beta ] gamma"))
        assert short.placements == long.placements
        assert short.edges == long.edges


class TestPacking:
    def test_inner_node_size(self):
        result = layout(decode_qtree("[.S  a b c ]"))
        assert (result.width, result.height) == (3, 2)
        assert result.placements[(0,)] == Placement(x=0, y=0, w=3, h=2)
        assert [result.placements[(0, i)] for i in range(3)] == [
            Placement(x=0, y=1, w=1, h=1),
            Placement(x=1, y=1, w=1, h=1),
            Placement(x=2, y=1, w=1, h=1),
        ]

    def test_shallow_children_hang_to_baseline(self):
        # [.S [.NP the cat ] sat ] : sat is shallower than NP
        result = layout(decode_qtree("[.S  [.NP  the cat ] sat ]"))
        assert (result.width, result.height) == (3, 3)
        assert result.placements[(0, 0)] == Placement(x=0, y=1, w=2, h=2)
        assert result.placements[(0, 1)] == Placement(x=2, y=2, w=1, h=1)
        bottoms = {p.y + p.h for path, p in result.placements.items() if len(path) > 1}
        assert bottoms == {3}

    def test_forest_roots_bottom_aligned(self):
        result = layout(decode_qtree("[.  the cat ] sat"))
        assert (result.width, result.height) == (3, 2)
        assert result.placements[(0,)] == Placement(x=0, y=0, w=2, h=2)
        assert result.placements[(1,)] == Placement(x=2, y=1, w=1, h=1)

    def test_label_centered(self):
        result = layout(decode_qtree("[.S  a b ] [.T  c d e ]"))
        assert result.placements[(0,)].label_x == 0.5
        assert result.placements[(1,)].label_x == 3.0
        assert result.placements[(1, 2)].label_x == 4.0


class TestEdges:
    def test_one_edge_per_child(self):
        forest = decode_qtree("[.S  [.NP  the cat ] sat ] down")
        result = layout(forest)
        child_count = sum(len(node.children) for _, node in iter_paths(forest))
        assert len(result.edges) == child_count

    def test_edge_endpoints_match_placements(self):
        result = layout(decode_qtree("[.S  [.NP  the cat ] sat ]"))
        for edge in result.edges:
            parent = result.placements[edge.parent]
            child = result.placements[edge.child]
            assert (edge.x1, edge.y1) == (parent.label_x, parent.label_y)
            assert (edge.x2, edge.y2) == (child.label_x, child.label_y)

    def test_edge_to_hanging_child(self):
        result = layout(decode_qtree("[.S  [.NP  the cat ] sat ]"))
        edge = next(e for e in result.edges if e.child == (0, 1))
        assert (edge.x1, edge.y1, edge.x2, edge.y2) == (1.0, 0, 2.0, 2)

    def test_no_edges_between_roots(self):
        result = layout((leaf("a"), leaf("b")))
        assert result.edges == []


class TestCanvas:
    def test_canvas_includes_margin(self):
        result = layout(decode_qtree("[.S  a b ] c"))
        assert result.canvas_size() == (5, 4)
        assert result.canvas_size(50) == (250, 200)

    def test_empty_canvas(self):
        assert Layout().canvas_size(50) == (100, 100)
