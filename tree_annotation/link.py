"""Share-link codec: a forest as base64 of its compact JSON.

The encoded string is meant for the ``tree`` query parameter of the
annotation page, e.g. ``https://.../?tree=eyJsYWJlbCI6IlMifQ==``.
Encoding uses the standard base64 alphabet; decoding also accepts the
URL-safe alphabet and missing padding, since links are often mangled
by the tools they pass through.
"""

from __future__ import annotations

import base64
import binascii
from urllib.parse import parse_qs, quote, urlsplit

import structlog

from .errors import ParseError
from .json_codec import decode_json, encode_json
from .tree import Forest

logger = structlog.get_logger(__name__)

# Query parameter carrying the encoded tree
TREE_PARAM = "tree"

# Public annotation page the links point to
DEFAULT_BASE_URL = "https://dcmlab.github.io/tree-annotation-code/"


def encode_link(forest: Forest) -> str:
    """Encode a forest as base64 of its compact UTF-8 JSON."""
    payload = encode_json(forest, pretty=False).encode("utf-8")
    return base64.b64encode(payload).decode("ascii")


def decode_link(text: str) -> Forest:
    """Decode a share-link payload back into a forest.

    Args:
        text: Base64 string (standard or URL-safe, padding optional).

    Returns:
        Decoded forest.

    Raises:
        ParseError: If the text is not valid base64, not UTF-8, or does
            not hold a well-formed tree JSON document.
    """
    # query string decoding turns an unescaped "+" into a space
    clean = "".join(text.strip().replace(" ", "+").split())
    clean = clean.replace("-", "+").replace("_", "/")
    clean += "=" * (-len(clean) % 4)
    try:
        payload = base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"Invalid base64 in link: {e}") from e

    try:
        json_text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError("Link payload is not UTF-8 text", e.start) from e

    try:
        forest = decode_json(json_text)
    except ParseError as e:
        raise ParseError(f"Invalid link payload: {e.reason}", e.position) from e

    logger.debug("link_decoded", roots=len(forest), length=len(text))
    return forest


def tree_url(forest: Forest, base_url: str = DEFAULT_BASE_URL) -> str:
    """Build a share URL carrying the forest in the ``tree`` parameter."""
    return f"{base_url}?{TREE_PARAM}={quote(encode_link(forest), safe='')}"


def forest_from_url(url: str) -> Forest | None:
    """Decode the forest carried by a share URL.

    Args:
        url: Full URL, or just its query string (with or without ``?``).

    Returns:
        Decoded forest, or None if the URL has no ``tree`` parameter.

    Raises:
        ParseError: If the parameter is present but malformed.
    """
    query = urlsplit(url).query if "://" in url else url.lstrip("?")
    values = parse_qs(query, keep_blank_values=True).get(TREE_PARAM)
    if not values:
        return None
    return decode_link(values[0])
