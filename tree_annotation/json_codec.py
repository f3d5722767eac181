"""JSON codec for annotation forests.

A node is written as ``{"label": "...", "children": [...]}``; leaves
omit ``children``. A forest with exactly one root is written as that
root's object, any other forest (empty, or several roots) as an array
of node objects. Both shapes are accepted on decode.

Decoding validates the structure with strict pydantic models, so a
non-string label or a non-array ``children`` is rejected instead of
being coerced.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import ParseError
from .tree import MAX_DEPTH, Forest, Node

logger = structlog.get_logger(__name__)


class NodeModel(BaseModel):
    """Validated JSON shape of one node.

    Attributes:
        label: Node label.
        children: Child nodes, empty or omitted for leaves.
    """

    model_config = ConfigDict(strict=True)

    label: str
    children: list[NodeModel] = Field(default_factory=list)

    def to_node(self) -> Node:
        """Convert to a tree node with all flags cleared."""
        return Node(label=self.label, children=tuple(c.to_node() for c in self.children))


NodeModel.model_rebuild()

_FOREST_ADAPTER = TypeAdapter(list[NodeModel])


def node_to_dict(node: Node) -> dict[str, Any]:
    """Plain dict for one node; leaves carry no ``children`` key."""
    data: dict[str, Any] = {"label": node.label}
    if not node.is_leaf:
        data["children"] = [node_to_dict(c) for c in node.children]
    return data


def forest_to_data(forest: Forest) -> dict[str, Any] | list[dict[str, Any]]:
    """JSON-ready structure for a forest (object for one root, else array)."""
    if len(forest) == 1:
        return node_to_dict(forest[0])
    return [node_to_dict(root) for root in forest]


def _check_depth(data: Any) -> None:
    """Reject ``children`` nested deeper than ``MAX_DEPTH`` before validating."""
    stack = [(item, 0) for item in (data if isinstance(data, list) else [data])]
    while stack:
        item, depth = stack.pop()
        if not isinstance(item, dict) or not isinstance(item.get("children"), list):
            continue
        if depth >= MAX_DEPTH and item["children"]:
            raise ParseError(f"Tree nested too deeply (more than {MAX_DEPTH} levels)")
        stack.extend((child, depth + 1) for child in item["children"])


def forest_from_data(data: Any) -> Forest:
    """Validate already-parsed JSON data and build a forest.

    Raises:
        ParseError: If the data is not a node object or an array of
            node objects, or nests children deeper than ``MAX_DEPTH``.
    """
    _check_depth(data)
    try:
        if isinstance(data, list):
            return tuple(model.to_node() for model in _FOREST_ADAPTER.validate_python(data))
        return (NodeModel.model_validate(data).to_node(),)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ParseError(f"Invalid tree JSON at {location}: {first['msg']}") from e


def encode_json(forest: Forest, pretty: bool = False) -> str:
    """Encode a forest as JSON.

    Args:
        forest: Forest to encode.
        pretty: Indent by two spaces for display. Compact otherwise.

    Returns:
        JSON text. Non-ASCII labels are kept verbatim.
    """
    data = forest_to_data(forest)
    if pretty:
        result = json.dumps(data, indent=2, ensure_ascii=False)
    else:
        result = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    logger.debug("json_encoded", roots=len(forest), pretty=pretty, length=len(result))
    return result


def decode_json(text: str) -> Forest:
    """Decode JSON text into a forest.

    Args:
        text: A node object or an array of node objects.

    Returns:
        Decoded forest with all flags cleared.

    Raises:
        ParseError: On malformed JSON (with position) or on a value that
            is not a well-formed node, or on nesting deeper than
            ``MAX_DEPTH``.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg}", e.pos) from e
    except RecursionError as e:
        raise ParseError(f"Tree nested too deeply (more than {MAX_DEPTH} levels)") from e

    forest = forest_from_data(data)
    logger.debug("json_decoded", roots=len(forest), length=len(text))
    return forest
