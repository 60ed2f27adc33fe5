"""Static code metrics for ingested files.

Dispatch by file extension:
  script extensions  → SourceAnalyzer   (complexity + dependencies)
  typed extensions   → TypeIntrospector (serialized type summary)

``sloc`` is always computed. The two analyses are independent and neither
can fail the caller: a parser error degrades its own fields only.
"""

from __future__ import annotations

import json
import logging
from pathlib import PurePath
from typing import Any, Iterable, Protocol

from codecontext.analysis.python_ast import (
    PythonSourceAnalyzer,
    PythonTypeIntrospector,
    SourceAnalysis,
)
from codecontext.db.models import CodeMetrics
from codecontext.errors import ParseFailure

logger = logging.getLogger(__name__)

_DEFAULT_SCRIPT_EXTS = (".py", ".pyw")
_DEFAULT_TYPED_EXTS = (".py", ".pyi")


class SourceAnalyzer(Protocol):
    def parse(self, source: str) -> Any: ...

    def analyze(self, tree: Any) -> SourceAnalysis: ...


class TypeIntrospector(Protocol):
    def parse(self, source: str) -> Any: ...

    def summarize(self, tree: Any) -> dict[str, list[dict[str, Any]]]: ...


class MetricsExtractor:
    """Compute ``CodeMetrics`` for a file's content.

    Args:
        analyzer: Parse/static-analysis capability for script files.
        introspector: Type-introspection capability for typed files.
        script_extensions: Suffixes routed to *analyzer*.
        typed_extensions: Suffixes routed to *introspector*.
    """

    def __init__(
        self,
        analyzer: SourceAnalyzer | None = None,
        introspector: TypeIntrospector | None = None,
        *,
        script_extensions: Iterable[str] = _DEFAULT_SCRIPT_EXTS,
        typed_extensions: Iterable[str] = _DEFAULT_TYPED_EXTS,
    ) -> None:
        self._analyzer = analyzer or PythonSourceAnalyzer()
        self._introspector = introspector or PythonTypeIntrospector()
        self._script_exts = {e.lower() for e in script_extensions}
        self._typed_exts = {e.lower() for e in typed_extensions}

    def analyze(self, content: str, file_path: str) -> CodeMetrics:
        ext = PurePath(file_path).suffix.lower()
        metrics = CodeMetrics(sloc=len(content.split("\n")))

        if ext in self._script_exts:
            try:
                analysis = self._complexity(content)
            except ParseFailure as exc:
                logger.warning("Error analyzing code metrics for %s: %s", file_path, exc)
            else:
                metrics.complexity = analysis.cyclomatic
                metrics.dependencies = list(analysis.imports)

        if ext in self._typed_exts:
            try:
                metrics.type_info = self._type_info(content)
            except ParseFailure as exc:
                logger.warning("Error extracting type info for %s: %s", file_path, exc)

        return metrics

    def _complexity(self, content: str) -> SourceAnalysis:
        try:
            return self._analyzer.analyze(self._analyzer.parse(content))
        except Exception as exc:
            raise ParseFailure(str(exc)) from exc

    def _type_info(self, content: str) -> str:
        try:
            summary = self._introspector.summarize(self._introspector.parse(content))
        except Exception as exc:
            raise ParseFailure(str(exc)) from exc
        return json.dumps(summary, indent=2)
