"""
lambda_rollback.config — Settings and function definition loading.

Settings come from environment variables (see RollbackSettings.from_env).
The function definition is a JSON file in the shape Lambda's
CreateFunction API accepts; only FunctionName is required here.

Template calls are expanded in the raw file before it is parsed:
    {{ must_env `NAME` }}          value of NAME, error if unset
    {{ env `NAME` `default` }}     value of NAME, or default
"""

from __future__ import annotations

import json
import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from lambda_rollback.exceptions import ConfigLoadError
from lambda_rollback.models import FunctionDefinition, ResolveStrategy

DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_BACKOFF_FACTOR = 1.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_READ_TIMEOUT_SECONDS = 60.0
DEFAULT_API_MAX_ATTEMPTS = 3

_TEMPLATE_RE = re.compile(r"\{\{\s*(must_env|env)\s+`([^`]*)`(?:\s+`([^`]*)`)?\s*\}\}")


def get_aws_region() -> str:
    region = os.environ.get("AWS_REGION", "").strip()
    if not region:
        raise RuntimeError("AWS_REGION environment variable not set")
    return region


def _env_float(
    environ: Mapping[str, str],
    name: str,
    default: float | None,
    *,
    minimum: float = 0.0,
    inclusive: bool = True,
) -> float | None:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value) or (value < minimum if inclusive else value <= minimum):
        bound = "at least" if inclusive else "greater than"
        raise RuntimeError(f"{name} must be {bound} {minimum}, got {raw!r}")
    return value


def _env_int(environ: Mapping[str, str], name: str, default: int | None) -> int | None:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise RuntimeError(f"{name} must be at least 1, got {value}")
    return value


@dataclass(frozen=True)
class RollbackSettings:
    region: str | None = None
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    # None keeps the deletion guard polling until the alias moves.
    max_wait_attempts: int | None = None
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_poll_interval_seconds: float | None = None
    resolve_strategy: ResolveStrategy = ResolveStrategy.SCAN
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    read_timeout_seconds: float = DEFAULT_READ_TIMEOUT_SECONDS
    api_max_attempts: int = DEFAULT_API_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.poll_interval_seconds < 0:
            raise RuntimeError("poll interval must be non-negative")
        if self.backoff_factor < 1:
            raise RuntimeError("backoff factor must be at least 1")
        if self.max_poll_interval_seconds is not None and self.max_poll_interval_seconds < 0:
            raise RuntimeError("max poll interval must be non-negative")
        if self.max_wait_attempts is not None and self.max_wait_attempts < 1:
            raise RuntimeError("max wait attempts must be at least 1")
        if self.connect_timeout_seconds <= 0 or self.read_timeout_seconds <= 0:
            raise RuntimeError("API timeouts must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RollbackSettings:
        env = os.environ if environ is None else environ
        strategy_raw = env.get("ROLLBACK_RESOLVE_STRATEGY", "").strip() or ResolveStrategy.SCAN
        try:
            strategy = ResolveStrategy(strategy_raw)
        except ValueError as exc:
            allowed = ", ".join(s.value for s in ResolveStrategy)
            raise RuntimeError(
                f"ROLLBACK_RESOLVE_STRATEGY must be one of {allowed}, got {strategy_raw!r}"
            ) from exc
        return cls(
            region=env.get("AWS_REGION", "").strip() or None,
            poll_interval_seconds=_env_float(
                env, "ROLLBACK_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS
            ),
            max_wait_attempts=_env_int(env, "ROLLBACK_MAX_WAIT_ATTEMPTS", None),
            backoff_factor=_env_float(
                env, "ROLLBACK_BACKOFF_FACTOR", DEFAULT_BACKOFF_FACTOR, minimum=1.0
            ),
            max_poll_interval_seconds=_env_float(env, "ROLLBACK_MAX_POLL_INTERVAL_SECONDS", None),
            resolve_strategy=strategy,
            connect_timeout_seconds=_env_float(
                env,
                "ROLLBACK_CONNECT_TIMEOUT_SECONDS",
                DEFAULT_CONNECT_TIMEOUT_SECONDS,
                inclusive=False,
            ),
            read_timeout_seconds=_env_float(
                env,
                "ROLLBACK_READ_TIMEOUT_SECONDS",
                DEFAULT_READ_TIMEOUT_SECONDS,
                inclusive=False,
            ),
        )


def expand_templates(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand env/must_env template calls in text.

    Raises KeyError naming the variable when a must_env variable is unset.
    """
    env = os.environ if environ is None else environ

    def _replace(match: re.Match[str]) -> str:
        func, name, default = match.group(1), match.group(2), match.group(3)
        if name in env:
            return env[name]
        if func == "must_env":
            raise KeyError(name)
        return default or ""

    return _TEMPLATE_RE.sub(_replace, text)


def load_function_definition(
    path: str | Path, environ: Mapping[str, str] | None = None
) -> FunctionDefinition:
    """Load a function definition file and return its identity.

    Any failure (missing file, unset must_env variable, invalid JSON,
    missing FunctionName) raises ConfigLoadError.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(
            f"failed to load function: cannot read {file_path}: {exc}", path=str(file_path)
        ) from exc
    try:
        expanded = expand_templates(raw, environ)
    except KeyError as exc:
        raise ConfigLoadError(
            f"failed to load function: environment variable {exc.args[0]} is not defined",
            path=str(file_path),
        ) from exc
    try:
        data = json.loads(expanded)
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(
            f"failed to load function: invalid JSON in {file_path}: {exc}", path=str(file_path)
        ) from exc
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"failed to load function: {file_path} must contain a JSON object",
            path=str(file_path),
        )
    function_name = str(data.get("FunctionName", "")).strip()
    if not function_name:
        raise ConfigLoadError(
            f"failed to load function: FunctionName missing in {file_path}", path=str(file_path)
        )
    return FunctionDefinition(function_name=function_name, raw=data)
