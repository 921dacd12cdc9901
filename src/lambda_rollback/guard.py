"""
lambda_rollback.guard — Delete a version once no alias points to it.

Lambda rejects deleting a version an alias still references, and an alias
update can take a moment to show up on reads.  The guard re-reads the
alias until it has moved, then deletes.

With the defaults (1 second, no attempt limit) the guard waits for as long
as the alias takes to move.  Set max_attempts to bound the wait.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

from lambda_rollback.exceptions import (
    DeletionGuardDeleteError,
    DeletionGuardReadError,
    DeletionGuardTimeoutError,
)
from lambda_rollback.models import CURRENT_ALIAS_NAME
from lambda_rollback.store import VersionStore

logger = structlog.get_logger(__name__)


def ensure_deleted(
    store: VersionStore,
    function_name: str,
    version: str,
    *,
    poll_interval: float = 1.0,
    max_attempts: int | None = None,
    backoff_factor: float = 1.0,
    max_interval: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    log: Any = None,
) -> None:
    """Wait until the current alias no longer targets version, then delete version.

    A failed alias read is fatal (DeletionGuardReadError); only the
    still-attached case is waited out.  Raises DeletionGuardTimeoutError
    when max_attempts reads in a row still return version.
    """
    if poll_interval < 0:
        raise ValueError(f"poll_interval must be non-negative, got {poll_interval}")
    if backoff_factor < 1:
        raise ValueError(f"backoff_factor must be at least 1, got {backoff_factor}")
    if max_interval is not None and max_interval < 0:
        raise ValueError(f"max_interval must be non-negative, got {max_interval}")
    log = log or logger
    interval = poll_interval
    attempts = 0
    while True:
        log.debug("checking aliased version", function_name=function_name, version=version)
        try:
            target = store.get_alias_target(function_name, CURRENT_ALIAS_NAME)
        except Exception as exc:
            raise DeletionGuardReadError(
                f"failed to get alias {CURRENT_ALIAS_NAME} of function {function_name}: {exc}",
                function_name=function_name,
                version=version,
            ) from exc
        if target != version:
            break
        attempts += 1
        if max_attempts is not None and attempts >= max_attempts:
            raise DeletionGuardTimeoutError(
                function_name=function_name, version=version, attempts=attempts
            )
        log.debug(
            f"version {version} still has alias {CURRENT_ALIAS_NAME}, retrying",
            function_name=function_name,
            wait_seconds=interval,
        )
        sleep(interval)
        interval = interval * backoff_factor
        if max_interval is not None:
            interval = min(interval, max_interval)

    log.info(f"deleting function version {version}", function_name=function_name)
    try:
        store.delete_function_version(function_name, version)
    except Exception as exc:
        raise DeletionGuardDeleteError(
            f"failed to delete version {version} of function {function_name}: {exc}",
            function_name=function_name,
            version=version,
        ) from exc
