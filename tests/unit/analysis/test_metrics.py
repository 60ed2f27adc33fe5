"""Tests for MetricsExtractor dispatch and failure isolation."""

from __future__ import annotations

import json

from codecontext.analysis.metrics import MetricsExtractor
from codecontext.analysis.python_ast import PythonTypeIntrospector, SourceAnalysis


SRC = "import os\n\ndef f(x: int) -> int:\n    if x:\n        return 1\n    return 0\n"


class BrokenAnalyzer:
    def parse(self, source):
        raise RuntimeError("parser crashed")

    def analyze(self, tree):
        return SourceAnalysis()


class BrokenIntrospector:
    def parse(self, source):
        return None

    def summarize(self, tree):
        raise RuntimeError("introspection crashed")


def test_sloc_counts_newline_separated_lines():
    metrics = MetricsExtractor().analyze("a\nb\n", "/ws/notes.txt")
    assert metrics.sloc == 3


def test_script_file_gets_complexity_and_dependencies():
    metrics = MetricsExtractor().analyze(SRC, "/ws/mod.py")
    assert metrics.complexity == 2
    assert metrics.dependencies == ["os"]


def test_script_file_gets_type_info():
    metrics = MetricsExtractor().analyze(SRC, "/ws/mod.py")
    info = json.loads(metrics.type_info)
    assert info["functions"][0]["name"] == "f"
    assert info["functions"][0]["returnType"] == "int"


def test_type_info_is_indented_json():
    metrics = MetricsExtractor().analyze(SRC, "/ws/mod.py")
    assert metrics.type_info == json.dumps(json.loads(metrics.type_info), indent=2)


def test_stub_file_gets_type_info_only():
    metrics = MetricsExtractor().analyze("def g() -> str: ...\n", "/ws/mod.pyi")
    assert metrics.complexity == 0
    assert metrics.dependencies == []
    assert json.loads(metrics.type_info)["functions"][0]["name"] == "g"


def test_unrecognized_extension_gets_sloc_only():
    metrics = MetricsExtractor().analyze("if x:\n  y\n", "/ws/README.md")
    assert metrics.complexity == 0
    assert metrics.dependencies == []
    assert metrics.type_info == ""
    assert metrics.sloc == 3


def test_extension_match_is_case_insensitive():
    metrics = MetricsExtractor().analyze(SRC, "/ws/MOD.PY")
    assert metrics.dependencies == ["os"]


def test_syntax_error_leaves_defaults(caplog):
    metrics = MetricsExtractor().analyze("def broken(:\n", "/ws/bad.py")
    assert metrics.complexity == 0
    assert metrics.dependencies == []
    assert metrics.type_info == ""
    assert metrics.sloc == 2
    assert "Error analyzing code metrics for /ws/bad.py" in caplog.text


def test_analyzer_failure_does_not_block_type_info():
    extractor = MetricsExtractor(BrokenAnalyzer(), PythonTypeIntrospector())
    metrics = extractor.analyze(SRC, "/ws/mod.py")
    assert metrics.complexity == 0
    assert json.loads(metrics.type_info)["functions"]


def test_introspector_failure_does_not_block_complexity():
    extractor = MetricsExtractor(introspector=BrokenIntrospector())
    metrics = extractor.analyze(SRC, "/ws/mod.py")
    assert metrics.complexity == 2
    assert metrics.type_info == ""


def test_custom_extensions():
    extractor = MetricsExtractor(script_extensions=[".pyx"], typed_extensions=[])
    metrics = extractor.analyze("import numpy\n", "/ws/fast.pyx")
    assert metrics.dependencies == ["numpy"]
    assert metrics.type_info == ""
