"""Tests for the tree annotation FastAPI endpoints."""

from fastapi.testclient import TestClient

from tree_annotation.link import encode_link
from tree_annotation.main import app
from tree_annotation.tree import leaf

client = TestClient(app)


class TestHealthEndpoint:
    def test_health_returns_200(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "tree-annotation"

    def test_health_includes_version(self):
        resp = client.get("/health")
        assert "version" in resp.json()


class TestConvertEndpoint:
    def test_convert_qtree(self):
        resp = client.post("/convert", json={"text": "[.S  [.NP  the cat ] sat ]"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["qtree"] == "[.S  [.NP  the cat ] sat ]"
        assert data["roots"] == 1
        assert data["complete"] is True
        assert data["leaves"] == ["the", "cat", "sat"]
        assert data["tree"]["label"] == "S"
        assert data["url"].startswith("https://dcmlab.github.io/tree-annotation-code/?tree=")

    def test_convert_tokens(self):
        resp = client.post("/convert", json={"text": "the cat sat", "format": "tokens"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["qtree"] == "the cat sat"
        assert data["json_text"] == '[{"label":"the"},{"label":"cat"},{"label":"sat"}]'
        assert data["complete"] is False

    def test_convert_json(self):
        resp = client.post(
            "/convert",
            json={
                "text": '{"label":"S","children":[{"label":"NP"},{"label":"VP"}]}',
                "format": "json",
                "export": {"math_inner": True, "math_leaves": True},
            },
        )
        assert resp.status_code == 200
        assert resp.json()["qtree"] == "[.$S$  $NP$ $VP$ ]"

    def test_convert_link(self):
        link = encode_link((leaf("a"), leaf("b")))
        resp = client.post("/convert", json={"text": link, "format": "link"})
        assert resp.status_code == 200
        assert resp.json()["link"] == link

    def test_convert_strip_math(self):
        resp = client.post("/convert", json={"text": "[.$S$  $a$ ]", "strip_math": True})
        assert resp.json()["json_text"] == '{"label":"S","children":[{"label":"a"}]}'

    def test_convert_pretty_json(self):
        resp = client.post("/convert", json={"text": "a", "export": {"pretty": True}})
        assert resp.json()["json_text"] == '{\n  "label": "a"\n}'

    def test_convert_malformed_qtree_returns_422(self):
        resp = client.post("/convert", json={"text": "[.S a"})
        assert resp.status_code == 422
        assert "Unbalanced" in resp.json()["detail"]

    def test_convert_malformed_json_returns_422(self):
        resp = client.post("/convert", json={"text": "{", "format": "json"})
        assert resp.status_code == 422

    def test_convert_unknown_format_returns_422(self):
        resp = client.post("/convert", json={"text": "a", "format": "yaml"})
        assert resp.status_code == 422

    def test_convert_deeply_nested_returns_422(self):
        resp = client.post("/convert", json={"text": "[.a " * 1500 + "x" + " ]" * 1500})
        assert resp.status_code == 422
        assert "nested too deeply" in resp.json()["detail"]

    def test_convert_unrepresentable_label_returns_422(self):
        resp = client.post("/convert", json={"text": '{"label":"} x"}', "format": "json"})
        assert resp.status_code == 422
        assert "unbalanced braces" in resp.json()["detail"]


class TestTreeLinkEndpoint:
    def test_decode_link(self):
        link = encode_link((leaf("x"),))
        resp = client.get("/tree", params={"tree": link})
        assert resp.status_code == 200
        assert resp.json()["qtree"] == "x"

    def test_absent_parameter_is_empty(self):
        resp = client.get("/tree")
        assert resp.status_code == 200
        data = resp.json()
        assert data["roots"] == 0
        assert data["json_text"] == "[]"

    def test_invalid_link_returns_422(self):
        resp = client.get("/tree", params={"tree": "***"})
        assert resp.status_code == 422


class TestEditEndpoint:
    TOKENS = '[{"label":"the"},{"label":"cat"},{"label":"sat"}]'

    def test_combine(self):
        resp = client.post(
            "/edit",
            json={"tree": self.TOKENS, "selected": [[0], [1]], "operation": "combine"},
        )
        assert resp.status_code == 200
        assert resp.json()["qtree"] == "[.  the cat ] sat"

    def test_delete_inner(self):
        tree = '[{"label":"","children":[{"label":"the"},{"label":"cat"}]},{"label":"sat"}]'
        resp = client.post("/edit", json={"tree": tree, "selected": [[0]], "operation": "delete"})
        assert resp.status_code == 200
        assert resp.json()["json_text"] == self.TOKENS

    def test_delete_blocked_leaf(self):
        resp = client.post(
            "/edit",
            json={"tree": self.TOKENS, "selected": [[1]], "operation": "delete"},
        )
        assert resp.status_code == 200
        assert resp.json()["leaves"] == ["the", "cat", "sat"]

    def test_empty_selection(self):
        resp = client.post("/edit", json={"tree": self.TOKENS, "operation": "combine"})
        assert resp.json()["json_text"] == self.TOKENS

    def test_invalid_path_returns_422(self):
        resp = client.post(
            "/edit",
            json={"tree": self.TOKENS, "selected": [[5]], "operation": "combine"},
        )
        assert resp.status_code == 422

    def test_invalid_operation_returns_422(self):
        resp = client.post("/edit", json={"tree": self.TOKENS, "operation": "split"})
        assert resp.status_code == 422


class TestPreviewEndpoints:
    def test_preview_svg(self):
        resp = client.post("/preview/svg", json={"text": "[.S  a b ]"})
        assert resp.status_code == 200
        assert "image/svg+xml" in resp.headers["content-type"]
        assert "<svg" in resp.text
        assert 'width="200"' in resp.text

    def test_preview_png(self):
        resp = client.post("/preview/png", json={"text": "a b", "format": "tokens", "scale": 20})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content[:4] == b"\x89PNG"

    def test_preview_invalid_scale(self):
        resp = client.post("/preview/svg", json={"text": "a", "scale": 1000})
        assert resp.status_code == 422

    def test_preview_malformed_tree(self):
        resp = client.post("/preview/svg", json={"text": "]"})
        assert resp.status_code == 422
