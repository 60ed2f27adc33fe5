"""Static analysis — complexity, dependencies and type summaries."""

from codecontext.analysis.metrics import MetricsExtractor
from codecontext.analysis.python_ast import (
    PythonSourceAnalyzer,
    PythonTypeIntrospector,
    SourceAnalysis,
)

__all__ = [
    "MetricsExtractor",
    "PythonSourceAnalyzer",
    "PythonTypeIntrospector",
    "SourceAnalysis",
]
