"""Domain models for the context store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field


@dataclass
class CodeMetrics:
    complexity: float = 0
    sloc: int = 0
    dependencies: list[str] = field(default_factory=list)
    type_info: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {
                "complexity": self.complexity,
                "sloc": self.sloc,
                "dependencies": self.dependencies,
                "typeInfo": self.type_info,
            }
        )

    @classmethod
    def from_json(cls, raw: str | None) -> CodeMetrics:
        data = json.loads(raw or "{}")
        return cls(
            complexity=data.get("complexity", 0),
            sloc=data.get("sloc", 0),
            dependencies=list(data.get("dependencies", [])),
            type_info=data.get("typeInfo", ""),
        )


@dataclass
class GitMetadata:
    """Last commit touching a file plus the enclosing branch.

    All fields default to ``""``; that is also the shape of a failed lookup.
    """

    last_commit: str = ""
    author: str = ""
    commit_message: str = ""
    branch: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {
                "lastCommit": self.last_commit,
                "author": self.author,
                "commitMessage": self.commit_message,
                "branch": self.branch,
            }
        )

    @classmethod
    def from_json(cls, raw: str | None) -> GitMetadata:
        data = json.loads(raw or "{}")
        return cls(
            last_commit=data.get("lastCommit", ""),
            author=data.get("author", ""),
            commit_message=data.get("commitMessage", ""),
            branch=data.get("branch", ""),
        )


@dataclass
class ContextEntry:
    """One ingestion result for one file at one point in time.

    ``id`` and ``timestamp`` are assigned by the store on insert; entries are
    never updated afterwards. ``relationships`` and ``cluster_name`` are only
    populated by ``ContextStore.recent()``.
    """

    file_path: str
    content: str
    metadata: dict = field(default_factory=dict)
    embedding: list[float] | None = None
    complexity_metrics: CodeMetrics = field(default_factory=CodeMetrics)
    git_metadata: GitMetadata = field(default_factory=GitMetadata)
    type_info: str = ""
    embedding_space: str | None = None
    id: int | None = None  # set after insert
    timestamp: str | None = None  # set after insert
    relationships: list[str] = field(default_factory=list)
    cluster_name: str | None = None

    @property
    def file_type(self) -> str:
        return self.metadata.get("fileType", "")


@dataclass
class Relationship:
    source_id: int
    target_id: int
    relationship_type: str
    weight: float = 1.0
    id: int | None = None


@dataclass
class CodeCluster:
    name: str
    files: list[str] = field(default_factory=list)
    complexity_score: float = 0.0
    description: str = ""
    id: int | None = None


@dataclass
class SprintSummary:
    start_date: str
    end_date: str
    summary: str = ""
    decisions: str = ""
    next_actions: str = ""
    id: int | None = None
