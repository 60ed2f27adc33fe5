"""Python source analysis on top of the standard library ``ast`` module.

``PythonSourceAnalyzer`` estimates cyclomatic complexity by counting decision
points and lists imported modules. ``PythonTypeIntrospector`` summarises the
declared types of a module: protocols, type aliases, classes and free
functions, with annotation text as written in the source.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any

_PROTOCOL_BASES = {"Protocol", "typing.Protocol", "typing_extensions.Protocol"}
_TYPE_ALIAS_ANNOTATIONS = {"TypeAlias", "typing.TypeAlias", "typing_extensions.TypeAlias"}


@dataclass
class SourceAnalysis:
    cyclomatic: int = 1
    imports: list[str] = field(default_factory=list)


class PythonSourceAnalyzer:
    """Parse + static analysis capability for Python sources."""

    def parse(self, source: str) -> ast.Module:
        return ast.parse(source)

    def analyze(self, tree: ast.AST) -> SourceAnalysis:
        """Return aggregate cyclomatic complexity and imports of *tree*.

        Complexity starts at 1 and adds one per decision point:
        - if / elif / ternary expressions
        - for / while loops (sync and async)
        - except handlers and match cases
        - each extra operand of and / or
        - comprehension ``for`` and ``if`` clauses
        - assert statements
        """
        complexity = 1
        for node in ast.walk(tree):
            if isinstance(node, (ast.If, ast.IfExp)):
                complexity += 1
            elif isinstance(node, (ast.For, ast.AsyncFor, ast.While)):
                complexity += 1
            elif isinstance(node, ast.ExceptHandler):
                complexity += 1
            elif isinstance(node, ast.BoolOp):
                complexity += len(node.values) - 1
            elif isinstance(node, ast.comprehension):
                complexity += 1 + len(node.ifs)
            elif isinstance(node, ast.Assert):
                complexity += 1
            elif isinstance(node, ast.match_case):
                complexity += 1
        return SourceAnalysis(cyclomatic=complexity, imports=self._imports(tree))

    @staticmethod
    def _imports(tree: ast.AST) -> list[str]:
        imports: list[str] = []
        nodes = [n for n in ast.walk(tree) if isinstance(n, (ast.Import, ast.ImportFrom))]
        nodes.sort(key=lambda n: (n.lineno, n.col_offset))
        for node in nodes:
            if isinstance(node, ast.Import):
                imports.extend(alias.name for alias in node.names)
            else:
                imports.append("." * node.level + (node.module or ""))
        return imports


class PythonTypeIntrospector:
    """Type-introspection capability for Python sources."""

    def parse(self, source: str) -> ast.Module:
        return ast.parse(source)

    def summarize(self, tree: ast.AST) -> dict[str, list[dict[str, Any]]]:
        collector = _DeclarationCollector()
        collector.visit(tree)
        return collector.summary


def _text(node: ast.AST | None) -> str | None:
    return ast.unparse(node) if node is not None else None


class _DeclarationCollector(ast.NodeVisitor):
    def __init__(self) -> None:
        self.summary: dict[str, list[dict[str, Any]]] = {
            "interfaces": [],
            "types": [],
            "classes": [],
            "functions": [],
        }

    # ---- classes ----

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        entry = {"name": node.name, "members": self._members(node)}
        bases = {ast.unparse(b) for b in node.bases}
        kind = "interfaces" if bases & _PROTOCOL_BASES else "classes"
        self.summary[kind].append(entry)
        # Nested classes are declarations too; methods are recorded as members.
        for child in node.body:
            if isinstance(child, ast.ClassDef):
                self.visit(child)

    @staticmethod
    def _members(node: ast.ClassDef) -> list[dict[str, str | None]]:
        members: list[dict[str, str | None]] = []
        for child in node.body:
            if isinstance(child, ast.AnnAssign) and isinstance(child.target, ast.Name):
                members.append({"name": child.target.id, "type": _text(child.annotation)})
            elif isinstance(child, ast.Assign):
                for target in child.targets:
                    if isinstance(target, ast.Name):
                        members.append({"name": target.id, "type": None})
            elif isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                members.append({"name": child.name, "type": None})
        return members

    # ---- type aliases ----

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if isinstance(node.target, ast.Name) and _text(node.annotation) in _TYPE_ALIAS_ANNOTATIONS:
            self.summary["types"].append({"name": node.target.id, "type": _text(node.value)})

    def visit_TypeAlias(self, node: ast.AST) -> None:  # Python 3.12+ ``type X = ...``
        self.summary["types"].append({"name": _text(node.name), "type": _text(node.value)})

    # ---- functions ----

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        args = node.args
        params = [*args.posonlyargs, *args.args]
        if args.vararg:
            params.append(args.vararg)
        params.extend(args.kwonlyargs)
        if args.kwarg:
            params.append(args.kwarg)
        self.summary["functions"].append(
            {
                "name": node.name,
                "parameters": [{"name": p.arg, "type": _text(p.annotation)} for p in params],
                "returnType": _text(node.returns),
            }
        )
        self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef
