"""Tests for the share-link codec."""

import base64

import pytest

from tree_annotation.errors import ParseError
from tree_annotation.link import (
    DEFAULT_BASE_URL,
    decode_link,
    encode_link,
    forest_from_url,
    tree_url,
)
from tree_annotation.tree import Node, leaf

SENTENCE = (Node(label="S", children=(leaf("NP"), leaf("VP"))),)


class TestEncodeLink:
    def test_is_base64_of_compact_json(self):
        text = encode_link(SENTENCE)
        payload = base64.b64decode(text).decode("utf-8")
        assert payload == '{"label":"S","children":[{"label":"NP"},{"label":"VP"}]}'

    def test_empty_forest(self):
        assert encode_link(()) == "W10="

    def test_non_ascii(self):
        forest = (leaf("Straße"), leaf("猫"))
        assert decode_link(encode_link(forest)) == forest


class TestDecodeLink:
    def test_roundtrip(self):
        assert decode_link(encode_link(SENTENCE)) == SENTENCE

    def test_roundtrip_empty(self):
        assert decode_link(encode_link(())) == ()

    def test_missing_padding(self):
        assert decode_link(encode_link(()).rstrip("=")) == ()

    def test_urlsafe_alphabet(self):
        forest = (leaf("???>>>"),)
        urlsafe = base64.urlsafe_b64encode(b'{"label":"???>>>"}').decode("ascii")
        assert "_" in urlsafe or "-" in urlsafe
        assert decode_link(urlsafe) == forest

    def test_plus_turned_into_space(self):
        forest = (leaf(">>>"),)
        text = encode_link(forest)
        assert "+" in text
        assert decode_link(text.replace("+", " ")) == forest

    def test_invalid_base64(self):
        with pytest.raises(ParseError, match="base64"):
            decode_link("not*base64!")

    def test_valid_base64_invalid_json(self):
        text = base64.b64encode(b"{not json").decode("ascii")
        with pytest.raises(ParseError, match="Invalid link payload"):
            decode_link(text)

    def test_valid_json_invalid_tree(self):
        text = base64.b64encode(b'{"name":"x"}').decode("ascii")
        with pytest.raises(ParseError, match="label"):
            decode_link(text)

    def test_not_utf8(self):
        text = base64.b64encode(b"\xff\xfe\xfd").decode("ascii")
        with pytest.raises(ParseError, match="UTF-8"):
            decode_link(text)


class TestUrls:
    def test_tree_url(self):
        url = tree_url(SENTENCE)
        assert url.startswith(DEFAULT_BASE_URL + "?tree=")
        assert forest_from_url(url) == SENTENCE

    def test_custom_base_url(self):
        url = tree_url((), "http://localhost:8000/")
        assert url == "http://localhost:8000/?tree=W10%3D"

    def test_query_string_only(self):
        assert forest_from_url("?tree=W10=") == ()
        assert forest_from_url("tree=W10%3D") == ()

    def test_absent_parameter(self):
        assert forest_from_url("https://example.org/?other=1") is None
        assert forest_from_url("https://example.org/") is None

    def test_unescaped_plus_in_url(self):
        forest = (leaf(">>>"),)
        url = f"https://example.org/?tree={encode_link(forest)}"
        assert "+" in url
        assert forest_from_url(url) == forest

    def test_malformed_parameter(self):
        with pytest.raises(ParseError):
            forest_from_url("https://example.org/?tree=%%%")
