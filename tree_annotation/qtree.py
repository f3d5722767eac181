"""QTree string codec.

Reads and writes the bracket grammar of the tikz-qtree LaTeX package:

    forest := node*
    node   := "[." label? node* "]"  |  label
    label  := bare | "{" balanced-text "}" bare?
    bare   := one or more characters other than whitespace, "[" and "]"

Whitespace between tokens is insignificant. An inner node's label
follows the dot immediately; whitespace right after the dot means an
empty label. Brace groups let labels carry whitespace or brackets, as
they do in tikz-qtree.

Labels can be wrapped in ``$...$`` on export so LaTeX typesets them in
math mode, and the wrapping can be stripped again on import so the
editable label text stays free of delimiters.
"""

from __future__ import annotations

import structlog

from .errors import ParseError
from .tree import MAX_DEPTH, Forest, Node

logger = structlog.get_logger(__name__)

_BRACKETS = "[]"


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _needs_braces(text: str, is_leaf: bool) -> bool:
    """Whether a label would not survive tokenization as a bare token."""
    if not text:
        # an empty inner label is expressed by whitespace after the dot
        return is_leaf
    return text.startswith("{") or any(ch.isspace() or ch in _BRACKETS for ch in text)


def _balanced(text: str) -> bool:
    """Whether ``{...}`` around ``text`` reads back as one brace group."""
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _format_label(label: str, math: bool, is_leaf: bool) -> str:
    text = f"${label}$" if math else label
    if _needs_braces(text, is_leaf):
        if not _balanced(text):
            raise ValueError(f"Label {label!r} cannot be written as QTree: unbalanced braces")
        return "{" + text + "}"
    return text


def _encode_node(node: Node, math_inner: bool, math_leaves: bool) -> str:
    if node.is_leaf:
        return _format_label(node.label, math_leaves, is_leaf=True)
    label = _format_label(node.label, math_inner, is_leaf=False)
    children = " ".join(_encode_node(c, math_inner, math_leaves) for c in node.children)
    return f"[.{label}  {children} ]"


def encode_qtree(forest: Forest, math_inner: bool = False, math_leaves: bool = False) -> str:
    """Encode a forest as a QTree string.

    Args:
        forest: Forest to encode.
        math_inner: Wrap inner node labels in ``$...$``.
        math_leaves: Wrap leaf labels in ``$...$``.

    Returns:
        Roots encoded left to right, separated by single spaces.

    Raises:
        ValueError: If a label needs a brace group but has unbalanced
            braces, so it would not read back as written.
    """
    result = " ".join(_encode_node(root, math_inner, math_leaves) for root in forest)
    logger.debug("qtree_encoded", roots=len(forest), length=len(result))
    return result


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def strip_math_delimiters(label: str) -> str:
    """Remove one surrounding ``$`` pair from a label, if present."""
    if len(label) >= 2 and label.startswith("$") and label.endswith("$"):
        return label[1:-1]
    return label


class _QTreeParser:
    """Recursive-descent parser over a QTree string."""

    def __init__(self, text: str, strip_math: bool) -> None:
        self.text = text
        self.pos = 0
        self.depth = 0
        self.strip_math = strip_math

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _peek(self) -> str:
        return self.text[self.pos]

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self.pos += 1

    def parse_forest(self) -> Forest:
        roots: list[Node] = []
        while True:
            self._skip_whitespace()
            if self._at_end():
                return tuple(roots)
            if self._peek() == "]":
                raise ParseError("Unexpected ']' without matching '['", self.pos)
            roots.append(self._parse_node())

    def _parse_node(self) -> Node:
        if self._peek() == "[":
            return self._parse_inner()
        return Node(label=self._finish_label(self._read_label()))

    def _parse_inner(self) -> Node:
        open_pos = self.pos
        if self.depth >= MAX_DEPTH:
            raise ParseError(f"Tree nested too deeply (more than {MAX_DEPTH} levels)", open_pos)
        self.pos += 1
        if self._at_end() or self._peek() != ".":
            raise ParseError("Expected '.' after '['", self.pos)
        dot_pos = self.pos
        self.pos += 1
        if self._at_end() or self._peek() == "]":
            raise ParseError("Dangling '.' without a following label", dot_pos)

        if self._peek().isspace() or self._peek() == "[":
            label = ""
        else:
            label = self._read_label()

        children: list[Node] = []
        self.depth += 1
        while True:
            self._skip_whitespace()
            if self._at_end():
                raise ParseError("Unbalanced '[': missing ']'", open_pos)
            if self._peek() == "]":
                self.pos += 1
                break
            children.append(self._parse_node())
        self.depth -= 1

        return Node(label=self._finish_label(label), children=tuple(children))

    def _read_label(self) -> str:
        """Read one label token starting at the current position."""
        parts: list[str] = []
        if self._peek() == "{":
            parts.append(self._read_brace_group())
        start = self.pos
        while not self._at_end():
            ch = self._peek()
            if ch.isspace() or ch in _BRACKETS:
                break
            self.pos += 1
        parts.append(self.text[start : self.pos])
        return "".join(parts)

    def _read_brace_group(self) -> str:
        """Read a balanced ``{...}`` group and return its inner text."""
        open_pos = self.pos
        depth = 0
        while not self._at_end():
            ch = self._peek()
            self.pos += 1
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return self.text[open_pos + 1 : self.pos - 1]
        raise ParseError("Unbalanced '{': missing '}'", open_pos)

    def _finish_label(self, label: str) -> str:
        if self.strip_math:
            return strip_math_delimiters(label)
        return label


def decode_qtree(text: str, strip_math: bool = False) -> Forest:
    """Decode a QTree string into a forest.

    Args:
        text: QTree string, possibly containing several roots.
        strip_math: Remove one surrounding ``$`` pair from every label.

    Returns:
        Decoded forest with all flags cleared. Empty or whitespace-only
        text yields the empty forest.

    Raises:
        ParseError: On unbalanced brackets or braces, a stray ``]``, a
            ``[`` not followed by ``.``, a dangling ``.``, or brackets
            nested deeper than ``MAX_DEPTH``.
    """
    forest = _QTreeParser(text, strip_math).parse_forest()
    logger.debug("qtree_decoded", roots=len(forest), length=len(text), strip_math=strip_math)
    return forest
