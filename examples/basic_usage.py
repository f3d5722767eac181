#!/usr/bin/env python3
"""Basic usage example for tree annotation.

Builds a small constituency tree over a sentence and exports it.

Usage:
    python examples/basic_usage.py
"""

from tree_annotation.config import SessionOptions
from tree_annotation.errors import ParseError
from tree_annotation.session import AnnotationSession


def example_build_tree():
    """Load tokens, combine adjacent nodes, label them and export."""
    print("=" * 60)
    print("Example 1: Build a Tree from Tokens")
    print("=" * 60)

    session = AnnotationSession()
    session.load_sequence("the cat sat on the mat")
    print(f"  Leaves:      {session.leaves}")

    # [the cat] -> NP
    session.toggle_select((0,))
    session.toggle_select((1,))
    session.combine_selected()
    session.set_label((0,), "NP")

    # [on the mat]: combine "the mat" first, then "on" with it
    session.toggle_select((3,))
    session.toggle_select((4,))
    session.combine_selected()
    session.set_label((3,), "NP")
    session.toggle_select((2,))
    session.toggle_select((3,))
    session.combine_selected()
    session.set_label((2,), "PP")

    # [sat [on the mat]] -> VP, then everything -> S
    session.toggle_select((1,))
    session.toggle_select((2,))
    session.combine_selected()
    session.set_label((1,), "VP")
    session.toggle_select((0,))
    session.toggle_select((1,))
    session.combine_selected()
    session.set_label((0,), "S")

    print(f"  Complete:    {session.is_complete}")
    print(f"  QTree:       {session.qtree()}")
    print(f"  JSON:        {session.json()}")
    print(f"  Link:        {session.url()}")
    print()
    return session


def example_math_export(session: AnnotationSession):
    """Export with math-mode labels and re-import with stripping."""
    print("=" * 60)
    print("Example 2: Math Labels")
    print("=" * 60)

    session.options.math_inner = True
    qtree = session.qtree()
    print(f"  QTree:       {qtree}")

    restored = AnnotationSession(options=SessionOptions(strip_math=True))
    restored.load_qtree(qtree)
    session.options.math_inner = False
    print(f"  Round trip:  {restored.forest == session.forest}")
    print()


def example_layout(session: AnnotationSession):
    """Compute the preview layout and SVG."""
    print("=" * 60)
    print("Example 3: Preview Layout")
    print("=" * 60)

    grid = session.layout()
    print(f"  Grid size:   {grid.width} x {grid.height}")
    for path, box in grid.placements.items():
        print(f"  {str(list(path)):<14} x={box.x} y={box.y} w={box.w} h={box.h}")
    print(f"  SVG bytes:   {len(session.render_svg())}")
    print()


def example_bad_input():
    """A malformed import leaves the current forest untouched."""
    print("=" * 60)
    print("Example 4: Malformed Input")
    print("=" * 60)

    session = AnnotationSession()
    session.load_sequence("a b c")
    try:
        session.load_qtree("[.S a b")
    except ParseError as e:
        print(f"  Error:       {e}")
    print(f"  Leaves kept: {session.leaves}")
    print()


if __name__ == "__main__":
    built = example_build_tree()
    example_math_export(built)
    example_layout(built)
    example_bad_input()
