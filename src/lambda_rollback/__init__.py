"""
lambda_rollback — Roll a Lambda function's current alias back to its previous version.

Resolves the nearest existing version below the one the alias points to,
repoints the alias, and optionally deletes the version rolled back from
once the alias has moved off it.

Implemented in TASK-028.
"""

from lambda_rollback.exceptions import (
    AliasReadError,
    AliasUpdateError,
    ConfigLoadError,
    DeletionGuardDeleteError,
    DeletionGuardError,
    DeletionGuardReadError,
    DeletionGuardTimeoutError,
    NoPreviousVersionError,
    RollbackError,
    VersionLookupError,
    VersionNotFoundError,
    VersionParseError,
)
from lambda_rollback.models import CURRENT_ALIAS_NAME, RollbackOptions, RollbackResult
from lambda_rollback.rollback import rollback
from lambda_rollback.store import LambdaVersionStore

__all__ = [
    "CURRENT_ALIAS_NAME",
    "AliasReadError",
    "AliasUpdateError",
    "ConfigLoadError",
    "DeletionGuardDeleteError",
    "DeletionGuardError",
    "DeletionGuardReadError",
    "DeletionGuardTimeoutError",
    "LambdaVersionStore",
    "NoPreviousVersionError",
    "RollbackError",
    "RollbackOptions",
    "RollbackResult",
    "VersionLookupError",
    "VersionNotFoundError",
    "VersionParseError",
    "rollback",
]
