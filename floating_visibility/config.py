"""Runtime configuration for floating visibility, read from environment variables."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from floating_visibility.backends import BACKEND_KINDS

_LOGGER = logging.getLogger("FloatingVisibility.Config")

ENV_PREFIX = "FLOATING_VISIBILITY_"
ENV_OVERRIDES_VAR = f"{ENV_PREFIX}ENV_OVERRIDES"
DEFAULT_BACKEND = "thread"
DEFAULT_HIDE_TIMEOUT_MS = 1500
LOG_RETENTION_MIN = 1
LOG_RETENTION_MAX = 20
DEFAULT_LOG_RETENTION = 5

_TRUE_TOKENS = {"1", "true", "yes", "on"}
_FALSE_TOKENS = {"0", "false", "no", "off"}


def _coerce_bool(value: Optional[str], fallback: bool) -> bool:
    if value is None:
        return fallback
    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    _LOGGER.debug("Ignoring unrecognised boolean value %r", value)
    return fallback


def _coerce_int(value: Optional[str], fallback: int, *, minimum: int, maximum: Optional[int] = None) -> int:
    if value is None:
        return fallback
    try:
        numeric = int(value.strip())
    except (TypeError, ValueError):
        _LOGGER.debug("Ignoring non-integer value %r", value)
        return fallback
    numeric = max(minimum, numeric)
    if maximum is not None:
        numeric = min(maximum, numeric)
    return numeric


@dataclass(frozen=True)
class FloatingConfig:
    backend: str = DEFAULT_BACKEND
    hide_timeout_ms: int = DEFAULT_HIDE_TIMEOUT_MS
    debug: bool = False
    log_dir: Optional[Path] = None
    logs_to_keep: int = DEFAULT_LOG_RETENTION
    propagate_logs: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FloatingConfig":
        """Load configuration from ``env`` (defaults to ``os.environ``)."""

        source = os.environ if env is None else env

        backend = (source.get(f"{ENV_PREFIX}BACKEND") or DEFAULT_BACKEND).strip().lower()
        if backend not in BACKEND_KINDS:
            _LOGGER.debug("Unknown backend %r; using %s", backend, DEFAULT_BACKEND)
            backend = DEFAULT_BACKEND

        log_dir_raw = source.get(f"{ENV_PREFIX}LOG_DIR")
        log_dir = Path(log_dir_raw).expanduser() if log_dir_raw else None

        return cls(
            backend=backend,
            hide_timeout_ms=_coerce_int(
                source.get(f"{ENV_PREFIX}HIDE_TIMEOUT_MS"), DEFAULT_HIDE_TIMEOUT_MS, minimum=0
            ),
            debug=_coerce_bool(source.get(f"{ENV_PREFIX}DEBUG"), False),
            log_dir=log_dir,
            logs_to_keep=_coerce_int(
                source.get(f"{ENV_PREFIX}LOGS_TO_KEEP"),
                DEFAULT_LOG_RETENTION,
                minimum=LOG_RETENTION_MIN,
                maximum=LOG_RETENTION_MAX,
            ),
            propagate_logs=_coerce_bool(source.get(f"{ENV_PREFIX}PROPAGATE_LOGS"), False),
        )


@dataclass
class MergeResult:
    applied: list[str] = field(default_factory=list)
    applied_values: Dict[str, str] = field(default_factory=dict)
    skipped_env: list[str] = field(default_factory=list)
    skipped_existing: list[str] = field(default_factory=list)


def load_overrides(path: Path) -> Mapping[str, object]:
    """Load an env overrides JSON file, returning {} on errors."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        _LOGGER.debug("Env overrides file %s is not valid JSON", path)
        return {}
    if not isinstance(data, dict):
        return {}
    env_block = data.get("env")
    if not isinstance(env_block, dict):
        env_block = {}
    return {"env": env_block}


def apply_overrides(env: Dict[str, str], overrides: Mapping[str, object]) -> MergeResult:
    """Merge overrides into env without clobbering already-set keys."""
    result = MergeResult()
    env_block = overrides.get("env") if isinstance(overrides, Mapping) else None
    if not isinstance(env_block, dict):
        env_block = {}
    for key, value in env_block.items():
        if key in os.environ:
            result.skipped_env.append(key)
            continue
        if key in env:
            result.skipped_existing.append(key)
            continue
        value_str = str(value)
        env[key] = value_str
        result.applied.append(key)
        result.applied_values[key] = value_str
    if result.applied:
        _LOGGER.debug(
            "Applied env overrides: %s",
            ", ".join(f"{key}={result.applied_values[key]}" for key in result.applied),
        )
    if result.skipped_env or result.skipped_existing:
        _LOGGER.debug(
            "Skipped env overrides (already set): env=%s existing=%s",
            ", ".join(result.skipped_env) or "none",
            ", ".join(result.skipped_existing) or "none",
        )
    return result


def load_config(
    overrides_path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> FloatingConfig:
    """Build the config from ``env`` plus an optional env overrides JSON file.

    Keys already present in ``env`` (or the process environment) win over the
    file. Without an explicit path, ``FLOATING_VISIBILITY_ENV_OVERRIDES`` names it.
    """
    base: Dict[str, str] = dict(os.environ if env is None else env)
    if overrides_path is None:
        raw_path = base.get(ENV_OVERRIDES_VAR)
        overrides_path = Path(raw_path).expanduser() if raw_path else None
    if overrides_path is not None:
        apply_overrides(base, load_overrides(overrides_path))
    return FloatingConfig.from_env(base)
