"""
lambda_rollback.models — Value types shared by the rollback components.

Versions are integers inside this package and decimal strings on the wire.
parse_version/format_version are the only crossing points.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from lambda_rollback.exceptions import VersionParseError

# Alias moved by every rollback.  Shared with the deploy tooling.
CURRENT_ALIAS_NAME = "current"

DRY_RUN_LABEL = "**DRY RUN**"
DEFAULT_FUNCTION_FILE = "function.json"

_VERSION_RE = re.compile(r"[0-9]+")


class RollbackOutcome(StrEnum):
    DRY_RUN = "dry_run"
    ROLLED_BACK = "rolled_back"
    ROLLED_BACK_AND_DELETED = "rolled_back_and_deleted"


class ResolveStrategy(StrEnum):
    SCAN = "scan"
    LISTING = "listing"


def parse_version(raw: str, *, function_name: str | None = None) -> int:
    """Parse a version string from the store as a base-10 integer.

    Only ASCII digits are accepted; int() would also take signs,
    whitespace and underscores.
    """
    if not isinstance(raw, str) or not _VERSION_RE.fullmatch(raw):
        raise VersionParseError(str(raw), function_name=function_name)
    return int(raw)


def format_version(version: int) -> str:
    return str(version)


@dataclass(frozen=True)
class FunctionDefinition:
    function_name: str
    raw: dict


@dataclass(frozen=True)
class FunctionVersion:
    function_name: str
    version: str
    code_sha256: str = ""
    last_modified: str = ""
    description: str = ""


@dataclass(frozen=True)
class RollbackOptions:
    function_file_path: str = DEFAULT_FUNCTION_FILE
    dry_run: bool = False
    delete_version: bool = False

    @property
    def label(self) -> str:
        return DRY_RUN_LABEL if self.dry_run else ""


@dataclass(frozen=True)
class RollbackResult:
    function_name: str
    current_version: str
    previous_version: str
    dry_run: bool
    deleted_version: str | None = None

    @property
    def outcome(self) -> RollbackOutcome:
        if self.dry_run:
            return RollbackOutcome.DRY_RUN
        if self.deleted_version is not None:
            return RollbackOutcome.ROLLED_BACK_AND_DELETED
        return RollbackOutcome.ROLLED_BACK
