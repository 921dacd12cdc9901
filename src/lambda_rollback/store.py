"""
lambda_rollback.store — Versioned-function store backed by the Lambda API.

VersionStore is the capability the rollback core depends on; tests pass an
in-memory fake, the CLI passes LambdaVersionStore.

Only the not-found signal of get_function_version is translated here
(to VersionNotFoundError).  Every other botocore ClientError propagates
and is wrapped by the caller, which knows which step failed.
"""

from __future__ import annotations

from typing import Any, Protocol

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import ClientError

from lambda_rollback.config import RollbackSettings
from lambda_rollback.exceptions import VersionNotFoundError
from lambda_rollback.models import FunctionVersion

logger = structlog.get_logger(__name__)

_NOT_FOUND = "ResourceNotFoundException"
_LATEST = "$LATEST"


class VersionStore(Protocol):
    def get_alias_target(self, function_name: str, alias_name: str) -> str: ...

    def get_function_version(self, function_name: str, version: str) -> FunctionVersion: ...

    def update_alias_target(self, function_name: str, alias_name: str, version: str) -> None: ...

    def delete_function_version(self, function_name: str, version: str) -> None: ...

    def list_versions(self, function_name: str) -> list[str]: ...


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def build_lambda_client(settings: RollbackSettings) -> Any:
    """Create a boto3 Lambda client with bounded connect/read timeouts.

    The timeouts stand in for a cancellation deadline: an unreachable
    endpoint fails the call instead of hanging the rollback.
    """
    config = Config(
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
        retries={"max_attempts": settings.api_max_attempts, "mode": "standard"},
    )
    return boto3.client("lambda", region_name=settings.region, config=config)


class LambdaVersionStore:
    """VersionStore over a boto3 ``lambda`` client."""

    def __init__(self, lambda_client: Any) -> None:
        self._lambda: Any = lambda_client

    def get_alias_target(self, function_name: str, alias_name: str) -> str:
        response = self._lambda.get_alias(FunctionName=function_name, Name=alias_name)
        return response["FunctionVersion"]

    def get_function_version(self, function_name: str, version: str) -> FunctionVersion:
        try:
            response = self._lambda.get_function(FunctionName=function_name, Qualifier=version)
        except ClientError as exc:
            if _error_code(exc) == _NOT_FOUND:
                raise VersionNotFoundError(function_name=function_name, version=version) from exc
            raise
        configuration = response.get("Configuration", {})
        return FunctionVersion(
            function_name=function_name,
            version=configuration.get("Version", version),
            code_sha256=configuration.get("CodeSha256", ""),
            last_modified=configuration.get("LastModified", ""),
            description=configuration.get("Description", ""),
        )

    def update_alias_target(self, function_name: str, alias_name: str, version: str) -> None:
        """Point the alias at version, creating the alias if it does not exist yet."""
        try:
            self._lambda.update_alias(
                FunctionName=function_name,
                Name=alias_name,
                FunctionVersion=version,
            )
            logger.info(
                "alias updated", function_name=function_name, alias=alias_name, version=version
            )
            return
        except ClientError as exc:
            if _error_code(exc) != _NOT_FOUND:
                raise
        logger.info("alias not found, creating", function_name=function_name, alias=alias_name)
        self._lambda.create_alias(
            FunctionName=function_name,
            Name=alias_name,
            FunctionVersion=version,
        )

    def delete_function_version(self, function_name: str, version: str) -> None:
        self._lambda.delete_function(FunctionName=function_name, Qualifier=version)

    def list_versions(self, function_name: str) -> list[str]:
        """Return every published version of the function, $LATEST excluded."""
        paginator = self._lambda.get_paginator("list_versions_by_function")
        versions: list[str] = []
        for page in paginator.paginate(FunctionName=function_name):
            for item in page.get("Versions", []):
                if item.get("Version") != _LATEST:
                    versions.append(item["Version"])
        return versions
