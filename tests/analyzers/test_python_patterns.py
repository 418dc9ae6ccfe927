"""Tests for the line-pattern Python extractor."""

from __future__ import annotations

from codedocs.analyzers.python_patterns import PythonPatternExtractor

MODULE = '''\
import os, sys as system
from pathlib import Path

def top(a, b=1):
    """Adds things."""
    return a + b

async def fetch(url) -> str:
    \'\'\'Fetch
    a url.\'\'\'
    return url

class Thing(Base):
    def method(self):
        pass
'''


def test_extracts_top_level_functions_only() -> None:
    facts = PythonPatternExtractor().extract(MODULE, "pkg/mod.py")

    assert [fn.name for fn in facts.functions] == ["top", "fetch"]
    top, fetch = facts.functions
    assert [param.name for param in top.parameters] == ["a", "b=1"]
    assert top.is_async is False
    assert top.line_start == 4
    assert top.line_end is None
    assert fetch.is_async is True
    assert fetch.file == "pkg/mod.py"


def test_docstrings_single_and_multi_line() -> None:
    facts = PythonPatternExtractor().extract(MODULE, "mod.py")

    assert facts.functions[0].docstring == "Adds things."
    assert facts.functions[1].docstring == "Fetch\na url."


def test_excerpt_stops_at_next_column_zero_line() -> None:
    facts = PythonPatternExtractor().extract(MODULE, "mod.py")

    excerpt = facts.functions[0].source_excerpt
    assert excerpt.startswith("def top(a, b=1):")
    assert "return a + b" in excerpt
    assert "async def fetch" not in excerpt


def test_classes_and_imports() -> None:
    facts = PythonPatternExtractor().extract(MODULE, "mod.py")

    assert [(cls.name, cls.line_start, cls.line_end) for cls in facts.classes] == [
        ("Thing", 13, None)
    ]
    assert facts.imports == ["os", "sys", "pathlib"]


def test_excerpt_window_caps_long_functions() -> None:
    body = "\n".join(f"    x{i} = {i}" for i in range(40))
    facts = PythonPatternExtractor().extract(f"def long():\n{body}\n", "long.py")

    assert len(facts.functions[0].source_excerpt.split("\n")) == 20


def test_multi_line_signature_is_missed() -> None:
    source = "def spread(\n    a,\n    b,\n):\n    return a\n"
    facts = PythonPatternExtractor().extract(source, "spread.py")

    assert facts.functions == []


def test_route_decorators_do_not_produce_endpoints() -> None:
    source = (
        "@app.get('/items')\n"
        "def list_items():\n"
        "    return []\n"
    )
    facts = PythonPatternExtractor().extract(source, "api.py")

    assert facts.endpoints == []
    assert [fn.name for fn in facts.functions] == ["list_items"]
