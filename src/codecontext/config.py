"""codecontext configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (CODECONTEXT_EMBEDDING_MODEL, CODECONTEXT_EMBEDDING_MODE,
     CODECONTEXT_DB)
  3. Per-project codecontext.yaml
  4. Global ~/.codecontext/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".codecontext"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "codecontext.yaml"

# Key names that look like credentials; forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["store", "embedding", "search", "recent", "ingest", "analysis"]
)

EMBEDDING_MODES: frozenset[str] = frozenset(["auto", "hash"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StoreCfg:
    """Persistence configuration (codecontext.yaml: store:)."""

    path: str = ".codecontext.db"


@dataclass
class EmbeddingCfg:
    """Embedding configuration (codecontext.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        mode: ``auto`` uses the model once it is ready and the hashing
            fallback otherwise; ``hash`` never touches the model.
        dimensions: Vector length shared by the model and the fallback.
        chunk_words: Maximum whitespace tokens per model input chunk.
    """

    model: str = "openai/text-embedding-3-small"
    mode: str = "auto"
    dimensions: int = 512
    chunk_words: int = 500


@dataclass
class SearchCfg:
    """Similarity search configuration (codecontext.yaml: search:)."""

    top_k: int = 5


@dataclass
class RecentCfg:
    """Recent-entries view configuration (codecontext.yaml: recent:)."""

    limit: int = 10


@dataclass
class IngestCfg:
    """Ingestion pipeline configuration (codecontext.yaml: ingest:)."""

    ordered_per_path: bool = True


@dataclass
class AnalysisCfg:
    """Static analysis dispatch by file extension (codecontext.yaml: analysis:)."""

    script_extensions: list[str] = field(default_factory=lambda: [".py", ".pyw"])
    typed_extensions: list[str] = field(default_factory=lambda: [".py", ".pyi"])


@dataclass
class ContextConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    store: StoreCfg = field(default_factory=StoreCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    search: SearchCfg = field(default_factory=SearchCfg)
    recent: RecentCfg = field(default_factory=RecentCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    analysis: AnalysisCfg = field(default_factory=AnalysisCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: ContextConfig) -> None:
    if cfg.embedding.mode not in EMBEDDING_MODES:
        raise ConfigError(
            f"embedding.mode must be one of {sorted(EMBEDDING_MODES)}, "
            f"got '{cfg.embedding.mode}'"
        )
    if cfg.embedding.dimensions < 1:
        raise ConfigError(
            f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}"
        )
    if cfg.embedding.chunk_words < 1:
        raise ConfigError(
            f"embedding.chunk_words must be >= 1, got {cfg.embedding.chunk_words}"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _normalise_exts(raw: list[Any]) -> list[str]:
    exts = []
    for ext in raw:
        ext = str(ext).lower()
        exts.append(ext if ext.startswith(".") else f".{ext}")
    return exts


def _cfg_from_dict(data: dict[str, Any]) -> ContextConfig:
    """Build a *ContextConfig* from a merged raw YAML dict."""
    cfg = ContextConfig()

    if "store" in data:
        s = data["store"] or {}
        cfg.store = StoreCfg(path=str(s.get("path", cfg.store.path)))

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            mode=str(e.get("mode", cfg.embedding.mode)).lower(),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            chunk_words=int(e.get("chunk_words", cfg.embedding.chunk_words)),
        )

    if "search" in data:
        sr = data["search"] or {}
        cfg.search = SearchCfg(top_k=int(sr.get("top_k", cfg.search.top_k)))

    if "recent" in data:
        r = data["recent"] or {}
        cfg.recent = RecentCfg(limit=int(r.get("limit", cfg.recent.limit)))

    if "ingest" in data:
        i = data["ingest"] or {}
        cfg.ingest = IngestCfg(
            ordered_per_path=bool(i.get("ordered_per_path", cfg.ingest.ordered_per_path))
        )

    if "analysis" in data:
        a = data["analysis"] or {}
        cfg.analysis = AnalysisCfg(
            script_extensions=_normalise_exts(
                a.get("script_extensions", cfg.analysis.script_extensions)
            ),
            typed_extensions=_normalise_exts(
                a.get("typed_extensions", cfg.analysis.typed_extensions)
            ),
        )

    return cfg


def _apply_env_overrides(cfg: ContextConfig) -> ContextConfig:
    """Apply CODECONTEXT_* environment variable overrides."""
    if model := os.environ.get("CODECONTEXT_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if mode := os.environ.get("CODECONTEXT_EMBEDDING_MODE"):
        cfg.embedding.mode = mode.lower()
    if db := os.environ.get("CODECONTEXT_DB"):
        cfg.store.path = db
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ContextConfig:
    """Load and return a merged *ContextConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *codecontext.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg
