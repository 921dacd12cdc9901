"""
lambda_rollback.rollback — Roll the current alias back to the previous version.

Steps, each depending on the one before:
  1. load the function definition
  2. read the current alias target and parse it
  3. resolve the previous existing version
  4. log the transition (labelled in dry-run mode)
  5. repoint the alias (skipped in dry-run mode)
  6. delete the rolled-back version (only with delete_version)

No step is retried here.  The deletion guard's wait for alias
propagation is the only loop.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

from lambda_rollback.config import RollbackSettings, load_function_definition
from lambda_rollback.exceptions import AliasReadError, AliasUpdateError, ConfigLoadError
from lambda_rollback.guard import ensure_deleted
from lambda_rollback.models import (
    CURRENT_ALIAS_NAME,
    FunctionDefinition,
    RollbackOptions,
    RollbackResult,
    format_version,
    parse_version,
)
from lambda_rollback.resolver import resolve
from lambda_rollback.store import VersionStore

logger = structlog.get_logger(__name__)


def rollback(
    store: VersionStore,
    options: RollbackOptions,
    *,
    loader: Callable[[str], FunctionDefinition] = load_function_definition,
    settings: RollbackSettings | None = None,
    log: Any = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RollbackResult:
    """Roll the function described by options.function_file_path back one version.

    Returns the resolved transition.  In dry-run mode nothing is mutated
    and the result is the transition that would have been applied.
    """
    settings = settings or RollbackSettings()
    log = log or logger

    try:
        fn = loader(options.function_file_path)
    except ConfigLoadError:
        raise
    except Exception as exc:
        raise ConfigLoadError(
            f"failed to load function: {exc}", path=options.function_file_path
        ) from exc
    function_name = fn.function_name
    log.info(f"starting rollback function {function_name}", function_name=function_name)

    try:
        current_version = store.get_alias_target(function_name, CURRENT_ALIAS_NAME)
    except Exception as exc:
        raise AliasReadError(
            f"failed to get alias {CURRENT_ALIAS_NAME} of function {function_name}: {exc}",
            function_name=function_name,
        ) from exc
    cv = parse_version(current_version, function_name=function_name)

    pv = resolve(store, function_name, cv, strategy=settings.resolve_strategy, log=log)
    previous_version = format_version(pv)

    log.info(
        f"rolling back function version {current_version} to {previous_version} "
        f"{options.label}".rstrip(),
        function_name=function_name,
        current_version=current_version,
        previous_version=previous_version,
        dry_run=options.dry_run,
    )
    result = RollbackResult(
        function_name=function_name,
        current_version=current_version,
        previous_version=previous_version,
        dry_run=options.dry_run,
    )
    if options.dry_run:
        return result

    try:
        store.update_alias_target(function_name, CURRENT_ALIAS_NAME, previous_version)
    except Exception as exc:
        raise AliasUpdateError(
            f"failed to update alias {CURRENT_ALIAS_NAME} of function {function_name} "
            f"to version {previous_version}: {exc}",
            function_name=function_name,
        ) from exc

    if not options.delete_version:
        return result

    ensure_deleted(
        store,
        function_name,
        current_version,
        poll_interval=settings.poll_interval_seconds,
        max_attempts=settings.max_wait_attempts,
        backoff_factor=settings.backoff_factor,
        max_interval=settings.max_poll_interval_seconds,
        sleep=sleep,
        log=log,
    )
    return RollbackResult(
        function_name=function_name,
        current_version=current_version,
        previous_version=previous_version,
        dry_run=False,
        deleted_version=current_version,
    )
