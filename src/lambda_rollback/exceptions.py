"""
lambda_rollback.exceptions — Error kinds raised during a rollback.

Every remote failure is wrapped with the operation that failed and the
function (and version, where relevant) it was acting on.  The underlying
botocore error stays reachable through ``__cause__``.
"""

from __future__ import annotations


class RollbackError(RuntimeError):
    """Base class for rollback failures."""

    def __init__(self, message: str, *, function_name: str | None = None) -> None:
        super().__init__(message)
        self.function_name = function_name


class ConfigLoadError(RollbackError):
    """Raised when the function definition file cannot be loaded."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class AliasReadError(RollbackError):
    """Raised when the alias target cannot be read before rolling back."""


class VersionParseError(RollbackError):
    """Raised when a version string from the store is not a base-10 integer."""

    def __init__(self, raw: str, *, function_name: str | None = None) -> None:
        super().__init__(f"failed to parse {raw!r} as int", function_name=function_name)
        self.raw = raw


class VersionNotFoundError(RollbackError):
    """The store has no such version.  Consumed by the resolver scan."""

    def __init__(self, *, function_name: str, version: str) -> None:
        super().__init__(
            f"version {version} of function {function_name} not found",
            function_name=function_name,
        )
        self.version = version


class VersionLookupError(RollbackError):
    """Raised when looking up a candidate version fails for any reason but not-found."""

    def __init__(self, message: str, *, function_name: str, version: int | None = None) -> None:
        super().__init__(message, function_name=function_name)
        self.version = version


class NoPreviousVersionError(RollbackError):
    """Raised when no version exists below the current one.

    Expected when a function has only one published version.
    """

    def __init__(self, *, function_name: str, current_version: int) -> None:
        super().__init__(
            f"unable to detect previous version of function {function_name} "
            f"(current version {current_version})",
            function_name=function_name,
        )
        self.current_version = current_version


class AliasUpdateError(RollbackError):
    """Raised when the alias cannot be moved to the previous version."""


class DeletionGuardError(RollbackError):
    """Base class for failures while deleting the rolled-back version."""

    def __init__(self, message: str, *, function_name: str, version: str) -> None:
        super().__init__(message, function_name=function_name)
        self.version = version


class DeletionGuardReadError(DeletionGuardError):
    """Raised when the alias cannot be read while waiting for detachment."""


class DeletionGuardDeleteError(DeletionGuardError):
    """Raised when deleting a detached version fails."""


class DeletionGuardTimeoutError(DeletionGuardError):
    """Raised when the alias still points at the version after the attempt limit."""

    def __init__(self, *, function_name: str, version: str, attempts: int) -> None:
        super().__init__(
            f"alias still points to version {version} of function {function_name} "
            f"after {attempts} checks",
            function_name=function_name,
            version=version,
        )
        self.attempts = attempts
