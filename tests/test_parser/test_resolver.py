"""Tests for apitypes.parser.resolver."""

from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from apitypes.exceptions import ContractLoadError, ContractParseError
from apitypes.parser.resolver import dereference, join_uri, resolve_pointer


def _deref(document: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    return asyncio.run(dereference(document, **kwargs))


# ---------------------------------------------------------------------------
# dereference (internal refs)
# ---------------------------------------------------------------------------


class TestDereference:
    """Test internal ``#/...`` resolution."""

    def test_resolves_simple_ref(self) -> None:
        doc = {
            "paths": {"/pets": {"get": {"schema": {"$ref": "#/components/schemas/Pet"}}}},
            "components": {"schemas": {"Pet": {"type": "object"}}},
        }
        resolved = _deref(doc)
        assert resolved["paths"]["/pets"]["get"]["schema"] == {"type": "object"}

    def test_does_not_mutate_original(self, widgets_raw: dict[str, Any]) -> None:
        before = copy.deepcopy(widgets_raw)
        _deref(widgets_raw)
        assert widgets_raw == before

    def test_no_refs_passthrough(self) -> None:
        doc = {"openapi": "3.0.3", "paths": {"/a": {"get": {"responses": {}}}}}
        assert _deref(doc) == doc

    def test_resolves_refs_inside_lists(self) -> None:
        doc = {
            "list": [{"$ref": "#/defs/a"}, {"$ref": "#/defs/b"}],
            "defs": {"a": 1, "b": {"x": True}},
        }
        assert _deref(doc)["list"] == [1, {"x": True}]

    def test_nested_refs(self) -> None:
        doc = {
            "root": {"$ref": "#/defs/outer"},
            "defs": {"outer": {"inner": {"$ref": "#/defs/leaf"}}, "leaf": {"type": "string"}},
        }
        assert _deref(doc)["root"] == {"inner": {"type": "string"}}

    def test_sibling_keys_override_target(self) -> None:
        doc = {
            "root": {"$ref": "#/defs/pet", "description": "Override"},
            "defs": {"pet": {"type": "object", "description": "Original"}},
        }
        assert _deref(doc)["root"] == {"type": "object", "description": "Override"}

    def test_circular_ref_left_unresolved(self) -> None:
        doc = {
            "root": {"$ref": "#/defs/node"},
            "defs": {
                "node": {
                    "type": "object",
                    "properties": {"child": {"$ref": "#/defs/node"}},
                }
            },
        }
        root = _deref(doc)["root"]
        assert root["type"] == "object"
        assert root["properties"]["child"] == {"$ref": "#/defs/node"}

    def test_same_ref_used_twice_is_resolved_twice(self) -> None:
        doc = {
            "a": {"$ref": "#/defs/x"},
            "b": {"$ref": "#/defs/x"},
            "defs": {"x": {"type": "integer"}},
        }
        resolved = _deref(doc)
        assert resolved["a"] == resolved["b"] == {"type": "integer"}

    def test_missing_pointer(self) -> None:
        doc = {"root": {"$ref": "#/components/schemas/Nope"}, "components": {"schemas": {}}}
        with pytest.raises(ContractParseError, match="'Nope' not found"):
            _deref(doc)

    def test_widgets_fixture_has_no_refs_left(self, widgets_raw: dict[str, Any]) -> None:
        assert "$ref" not in json.dumps(_deref(widgets_raw))


# ---------------------------------------------------------------------------
# dereference (external refs)
# ---------------------------------------------------------------------------


class TestExternalRefs:
    """Test references into other files and URLs."""

    def test_relative_file_ref(self, tmp_path: Path) -> None:
        (tmp_path / "schemas").mkdir()
        (tmp_path / "schemas" / "pet.json").write_text(
            json.dumps({"Pet": {"type": "object", "properties": {"owner": {"$ref": "#/Owner"}}},
                        "Owner": {"type": "string"}}),
            encoding="utf-8",
        )
        doc = {"root": {"$ref": "schemas/pet.json#/Pet"}}
        resolved = _deref(doc, base_uri=str(tmp_path / "openapi.json"))
        assert resolved["root"] == {
            "type": "object",
            "properties": {"owner": {"type": "string"}},
        }

    def test_yaml_file_ref_whole_document(self, tmp_path: Path) -> None:
        (tmp_path / "error.yaml").write_text("type: object\n", encoding="utf-8")
        doc = {"root": {"$ref": "error.yaml"}}
        resolved = _deref(doc, base_uri=str(tmp_path / "openapi.yaml"))
        assert resolved["root"] == {"type": "object"}

    def test_missing_external_file(self, tmp_path: Path) -> None:
        doc = {"root": {"$ref": "missing.json#/X"}}
        with pytest.raises(ContractLoadError, match="not found"):
            _deref(doc, base_uri=str(tmp_path / "openapi.json"))

    def test_remote_ref_relative_to_remote_base(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json={"Widget": {"type": "object"}})

        doc = {"a": {"$ref": "common.json#/Widget"}, "b": {"$ref": "common.json#/Widget"}}

        async def run() -> dict[str, Any]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await dereference(
                    doc, base_uri="https://example.com/api/openapi.json", client=client
                )

        resolved = asyncio.run(run())
        assert resolved["a"] == resolved["b"] == {"type": "object"}
        # each external document is fetched once per call
        assert requested == ["https://example.com/api/common.json"]


# ---------------------------------------------------------------------------
# join_uri
# ---------------------------------------------------------------------------


class TestJoinUri:
    def test_absolute_url_wins(self) -> None:
        assert join_uri("specs/a.yaml", "https://x.test/b.json") == "https://x.test/b.json"

    def test_relative_to_url(self) -> None:
        assert (
            join_uri("https://x.test/api/openapi.json", "../common.json")
            == "https://x.test/common.json"
        )

    def test_relative_to_file(self) -> None:
        assert Path(join_uri("specs/openapi.yaml", "common.yaml")) == Path("specs/common.yaml")

    def test_relative_to_file_url(self, tmp_path: Path) -> None:
        base = (tmp_path / "openapi.yaml").as_uri()
        assert Path(join_uri(base, "common.yaml")) == tmp_path / "common.yaml"

    def test_no_base(self) -> None:
        assert Path(join_uri(None, "common.yaml")) == Path("common.yaml")


# ---------------------------------------------------------------------------
# resolve_pointer
# ---------------------------------------------------------------------------


class TestResolvePointer:
    def test_empty_pointer_is_whole_document(self) -> None:
        doc = {"a": 1}
        assert resolve_pointer(doc, "", "#") is doc

    def test_escapes(self) -> None:
        doc = {"paths": {"/a/{id}": {"x~y": 1}}}
        assert resolve_pointer(doc, "/paths/~1a~1{id}/x~0y", "ref") == 1

    def test_percent_encoding(self) -> None:
        doc = {"a b": 2}
        assert resolve_pointer(doc, "/a%20b", "ref") == 2

    def test_array_index(self) -> None:
        assert resolve_pointer({"list": ["a", "b"]}, "/list/1", "ref") == "b"

    def test_bad_array_index(self) -> None:
        with pytest.raises(ContractParseError, match="invalid array index"):
            resolve_pointer({"list": []}, "/list/3", "ref")

    def test_not_a_pointer(self) -> None:
        with pytest.raises(ContractParseError, match="JSON Pointer"):
            resolve_pointer({}, "Pet", "#Pet")

    def test_navigate_into_scalar(self) -> None:
        with pytest.raises(ContractParseError, match="cannot navigate into int"):
            resolve_pointer({"a": 1}, "/a/b", "ref")
