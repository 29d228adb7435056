"""Tests for apitypes.compiler.

The real ``json2ts`` is replaced by ``tests/fixtures/fake_json2ts.py`` run
with the current interpreter, so the subprocess plumbing is exercised for
real.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import pytest

from apitypes.compiler import build_command, compile_to_declarations
from apitypes.exceptions import CompilerError
from apitypes.models import CompilerOptions

FAKE_COMPILER = Path(__file__).parent / "fixtures" / "fake_json2ts.py"

SCHEMA = {
    "type": "object",
    "properties": {"/widgets": {"type": "object"}},
    "required": ["/widgets"],
    "additionalProperties": False,
}


def _options(*extra: str, **kwargs) -> CompilerOptions:
    return CompilerOptions(command=[sys.executable, str(FAKE_COMPILER), *extra], **kwargs)


# ---------------------------------------------------------------------------
# build_command
# ---------------------------------------------------------------------------


class TestBuildCommand:
    def test_defaults(self) -> None:
        assert build_command(CompilerOptions()) == ["json2ts", "--ignoreMinAndMaxItems"]

    def test_tuples_allowed(self) -> None:
        options = CompilerOptions(ignore_min_and_max_items=False)
        assert build_command(options) == ["json2ts"]

    def test_banner_comment(self) -> None:
        options = CompilerOptions(command=["npx", "json2ts"], banner_comment="")
        assert build_command(options) == [
            "npx",
            "json2ts",
            "--ignoreMinAndMaxItems",
            "--bannerComment",
            "",
        ]


# ---------------------------------------------------------------------------
# compile_to_declarations
# ---------------------------------------------------------------------------


class TestCompileToDeclarations:
    def test_root_name_and_flags(self) -> None:
        text = asyncio.run(compile_to_declarations(SCHEMA, "Paths", _options()))
        assert "// flags: --ignoreMinAndMaxItems" in text
        assert "export interface Paths {" in text
        assert '"/widgets": unknown;' in text

    def test_schema_not_mutated(self) -> None:
        before = json.dumps(SCHEMA, sort_keys=True)
        asyncio.run(compile_to_declarations(SCHEMA, "Paths", _options()))
        assert json.dumps(SCHEMA, sort_keys=True) == before
        assert "title" not in SCHEMA

    def test_non_zero_exit(self) -> None:
        with pytest.raises(CompilerError) as exc_info:
            asyncio.run(compile_to_declarations(SCHEMA, "Paths", _options("--fail")))
        message = str(exc_info.value)
        assert "exited with status 3" in message
        assert "schema rejected" in message

    def test_missing_executable(self) -> None:
        options = CompilerOptions(command=["apitypes-no-such-compiler"])
        with pytest.raises(CompilerError, match="Compiler not found"):
            asyncio.run(compile_to_declarations(SCHEMA, "Paths", options))

    def test_timeout(self) -> None:
        options = _options("--hang", timeout=0.5)
        with pytest.raises(CompilerError, match="timed out"):
            asyncio.run(compile_to_declarations(SCHEMA, "Paths", options))

    def test_empty_command(self) -> None:
        with pytest.raises(CompilerError, match="No compiler command"):
            asyncio.run(compile_to_declarations(SCHEMA, "Paths", CompilerOptions(command=[])))
