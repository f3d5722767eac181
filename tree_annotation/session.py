"""Host-facing annotation session.

An ``AnnotationSession`` owns the current forest and the session
options. User interfaces call its methods in response to gestures and
re-render from ``session.forest`` (or ``session.layout()``) afterwards.

Imports never partially apply: when decoding fails the current forest
is kept, a warning is logged, and the ``ParseError`` is re-raised for
the host to show.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from . import edits
from .config import SessionOptions
from .errors import ParseError
from .json_codec import decode_json, encode_json
from .layout import Layout, layout
from .link import decode_link, encode_link, forest_from_url, tree_url
from .qtree import decode_qtree, encode_qtree
from .renderer import render_svg
from .tree import Forest, forest_leaves

logger = structlog.get_logger(__name__)


class AnnotationSession:
    """Current forest plus options, with every edit and codec operation.

    Args:
        forest: Initial forest (empty by default).
        options: Session options; defaults are used if None.
    """

    def __init__(self, forest: Forest = (), options: SessionOptions | None = None) -> None:
        self._forest: Forest = tuple(forest)
        self.options = options or SessionOptions()

    @property
    def forest(self) -> Forest:
        """Current forest revision."""
        return self._forest

    @property
    def is_complete(self) -> bool:
        """True if the forest is a single tree (one root)."""
        return len(self._forest) == 1

    @property
    def leaves(self) -> list[str]:
        """Current token sequence."""
        return forest_leaves(self._forest)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def toggle_select(self, path: Sequence[int]) -> None:
        self._forest = edits.toggle_select(self._forest, path)

    def deselect_all(self) -> None:
        self._forest = edits.deselect_all(self._forest)

    def combine_selected(self) -> None:
        before = len(self._forest)
        self._forest = edits.combine_selected(self._forest)
        logger.info("selection_combined", roots_before=before, roots_after=len(self._forest))

    def delete_selected(self) -> None:
        before = len(self._forest)
        self._forest = edits.delete_selected(self._forest)
        logger.info("selection_deleted", roots_before=before, roots_after=len(self._forest))

    def start_renaming(self, path: Sequence[int]) -> None:
        self._forest = edits.start_renaming(self._forest, path)

    def start_renaming_selected(self) -> None:
        self._forest = edits.start_renaming_selected(self._forest)

    def set_label(self, path: Sequence[int], text: str) -> None:
        self._forest = edits.set_label(self._forest, path, text)

    def stop_renaming(self, path: Sequence[int]) -> None:
        self._forest = edits.stop_renaming(self._forest, path)

    def cancel_renaming(self, path: Sequence[int]) -> None:
        self._forest = edits.cancel_renaming(self._forest, path)

    # ------------------------------------------------------------------
    # Importing
    # ------------------------------------------------------------------

    def load_tokens(self, tokens: Sequence[str]) -> None:
        """Replace the forest with one leaf per token."""
        self._forest = edits.set_leaves_from_tokens(tokens)
        logger.info("forest_loaded", source="tokens", leaves=len(self._forest))

    def load_sequence(self, text: str) -> None:
        """Replace the forest with the whitespace-separated tokens of ``text``."""
        self.load_tokens(text.split())

    def _replace(self, source: str, decode: Callable[[str], Forest | None], text: str) -> bool:
        try:
            forest = decode(text)
        except ParseError as e:
            logger.warning("forest_load_failed", source=source, error=str(e))
            raise
        if forest is None:
            return False
        self._forest = forest
        logger.info("forest_loaded", source=source, roots=len(forest))
        return True

    def load_qtree(self, text: str) -> None:
        """Replace the forest with a decoded QTree string.

        Raises:
            ParseError: If the string is malformed; the forest is kept.
        """
        strip_math = self.options.strip_math
        self._replace("qtree", lambda t: decode_qtree(t, strip_math=strip_math), text)

    def load_json(self, text: str) -> None:
        """Replace the forest with decoded JSON.

        Raises:
            ParseError: If the JSON is malformed; the forest is kept.
        """
        self._replace("json", decode_json, text)

    def load_link(self, text: str) -> None:
        """Replace the forest with a decoded share-link payload.

        Raises:
            ParseError: If the payload is malformed; the forest is kept.
        """
        self._replace("link", decode_link, text)

    def load_url(self, url: str) -> bool:
        """Load the tree carried by a share URL, if it has one.

        Returns:
            True if the URL carried a tree and it was loaded, False if it
            had no ``tree`` parameter (the forest is left unchanged).

        Raises:
            ParseError: If the parameter is malformed; the forest is kept.
        """
        return self._replace("url", forest_from_url, url)

    # ------------------------------------------------------------------
    # Exporting
    # ------------------------------------------------------------------

    def qtree(self) -> str:
        return encode_qtree(
            self._forest,
            math_inner=self.options.math_inner,
            math_leaves=self.options.math_leaves,
        )

    def json(self) -> str:
        return encode_json(self._forest, pretty=self.options.pretty_json)

    def link(self) -> str:
        return encode_link(self._forest)

    def url(self) -> str:
        return tree_url(self._forest, self.options.base_url)

    def layout(self) -> Layout:
        return layout(self._forest)

    def render_svg(self) -> str:
        return render_svg(self._forest, scale=self.options.svg_scale)
