"""
lambda_rollback.resolver — Find the nearest existing version below the current one.

Versions may be missing (deleted, or numbers Lambda never published), so the
previous version is not simply current - 1.
"""

from __future__ import annotations

from typing import Any

import structlog

from lambda_rollback.exceptions import (
    NoPreviousVersionError,
    VersionLookupError,
    VersionNotFoundError,
    VersionParseError,
)
from lambda_rollback.models import ResolveStrategy, format_version, parse_version
from lambda_rollback.store import VersionStore

logger = structlog.get_logger(__name__)


def resolve_previous_version(
    store: VersionStore,
    function_name: str,
    current_version: int,
    *,
    log: Any = None,
) -> int:
    """Scan downward from current_version - 1 to 1 and return the first version found.

    VersionNotFoundError moves on to the next candidate.  Any other error
    aborts the scan as VersionLookupError; a throttled or denied call is
    never mistaken for a missing version.  Raises NoPreviousVersionError
    once the range is exhausted.
    """
    log = log or logger
    for candidate in range(current_version - 1, 0, -1):
        version = format_version(candidate)
        log.debug("get function version", function_name=function_name, version=version)
        try:
            store.get_function_version(function_name, version)
        except VersionNotFoundError:
            log.debug("version not found", function_name=function_name, version=version)
            continue
        except Exception as exc:
            raise VersionLookupError(
                f"failed to get function {function_name} version {version}: {exc}",
                function_name=function_name,
                version=candidate,
            ) from exc
        return candidate
    raise NoPreviousVersionError(function_name=function_name, current_version=current_version)


def resolve_previous_version_from_listing(
    store: VersionStore,
    function_name: str,
    current_version: int,
    *,
    log: Any = None,
) -> int:
    """Return the greatest published version below current_version using one listing.

    Equivalent to the scan for any set of existing versions, in a single
    paginated call instead of one call per candidate.
    """
    log = log or logger
    try:
        published = store.list_versions(function_name)
    except Exception as exc:
        raise VersionLookupError(
            f"failed to list versions of function {function_name}: {exc}",
            function_name=function_name,
        ) from exc

    candidates: list[int] = []
    for raw in published:
        try:
            version = parse_version(raw, function_name=function_name)
        except VersionParseError:
            log.warning("ignoring unparsable version", function_name=function_name, version=raw)
            continue
        if 0 < version < current_version:
            candidates.append(version)
    if not candidates:
        raise NoPreviousVersionError(function_name=function_name, current_version=current_version)
    return max(candidates)


def resolve(
    store: VersionStore,
    function_name: str,
    current_version: int,
    *,
    strategy: ResolveStrategy = ResolveStrategy.SCAN,
    log: Any = None,
) -> int:
    if strategy is ResolveStrategy.LISTING:
        return resolve_previous_version_from_listing(store, function_name, current_version, log=log)
    return resolve_previous_version(store, function_name, current_version, log=log)
