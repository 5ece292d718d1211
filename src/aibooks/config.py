"""AI Books configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (AIBOOKS_N_MAX, AIBOOKS_TOP_K, AIBOOKS_DB)
  3. Per-project aibooks.yaml  (in the working directory)
  4. Global ~/.aibooks/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".aibooks"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "aibooks.yaml"

# Known top-level sections; anything else produces a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["codec", "chunker", "retrieval", "store"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file or environment variable holds an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class CodecCfg:
    """Encoding configuration (aibooks.yaml: codec:).

    Attributes:
        n_max: Orbital level; the codec window is 2**n_max bytes (clamped to 512 B..32 KiB).
    """

    n_max: int = 15


@dataclass
class ChunkerCfg:
    """Chunk sizing (aibooks.yaml: chunker:)."""

    chunk_size: int = 512  # tokens, 4 chars each
    min_fill: float = 0.5


@dataclass
class RetrievalCfg:
    """Retrieval defaults (aibooks.yaml: retrieval:)."""

    top_k: int = 8
    max_results: int = 10
    preview_chars: int = 200


@dataclass
class StoreCfg:
    """Library store location (aibooks.yaml: store:)."""

    path: str = ".aibooks.db"


@dataclass
class AIBooksConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    codec: CodecCfg = field(default_factory=CodecCfg)
    chunker: ChunkerCfg = field(default_factory=ChunkerCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    store: StoreCfg = field(default_factory=StoreCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from exc
    if number < 1:
        raise ConfigError(f"'{key}' must be >= 1, got {number}")
    return number


def _validate(cfg: AIBooksConfig) -> None:
    _positive_int(cfg.codec.n_max, "codec.n_max")
    _positive_int(cfg.chunker.chunk_size, "chunker.chunk_size")
    _positive_int(cfg.retrieval.top_k, "retrieval.top_k")
    _positive_int(cfg.retrieval.max_results, "retrieval.max_results")
    _positive_int(cfg.retrieval.preview_chars, "retrieval.preview_chars")
    if not 0.0 < cfg.chunker.min_fill <= 1.0:
        raise ConfigError(
            f"'chunker.min_fill' must be in (0.0, 1.0], got {cfg.chunker.min_fill}"
        )
    if not cfg.store.path:
        raise ConfigError("'store.path' must not be empty")


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


def _cfg_from_dict(data: dict[str, Any]) -> AIBooksConfig:
    """Build an *AIBooksConfig* from a merged raw YAML dict."""
    cfg = AIBooksConfig()

    if "codec" in data:
        c = data["codec"] or {}
        cfg.codec = CodecCfg(
            n_max=_positive_int(c.get("n_max", cfg.codec.n_max), "codec.n_max"),
        )

    if "chunker" in data:
        ch = data["chunker"] or {}
        try:
            min_fill = float(ch.get("min_fill", cfg.chunker.min_fill))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"'chunker.min_fill' must be a number: {exc}") from exc
        cfg.chunker = ChunkerCfg(
            chunk_size=_positive_int(
                ch.get("chunk_size", cfg.chunker.chunk_size), "chunker.chunk_size"
            ),
            min_fill=min_fill,
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            top_k=_positive_int(r.get("top_k", cfg.retrieval.top_k), "retrieval.top_k"),
            max_results=_positive_int(
                r.get("max_results", cfg.retrieval.max_results), "retrieval.max_results"
            ),
            preview_chars=_positive_int(
                r.get("preview_chars", cfg.retrieval.preview_chars), "retrieval.preview_chars"
            ),
        )

    if "store" in data:
        s = data["store"] or {}
        cfg.store = StoreCfg(path=str(s.get("path", cfg.store.path)))

    return cfg


def _apply_env_overrides(cfg: AIBooksConfig) -> AIBooksConfig:
    """Apply AIBOOKS_* environment variable overrides (layer 2)."""
    if n_max := os.environ.get("AIBOOKS_N_MAX"):
        cfg.codec.n_max = _positive_int(n_max, "AIBOOKS_N_MAX")
    if top_k := os.environ.get("AIBOOKS_TOP_K"):
        cfg.retrieval.top_k = _positive_int(top_k, "AIBOOKS_TOP_K")
    if db_path := os.environ.get("AIBOOKS_DB"):
        cfg.store.path = db_path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> AIBooksConfig:
    """Load and return a merged *AIBooksConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *aibooks.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *AIBooksConfig* with env var overrides applied.

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg
