#!/usr/bin/env python3
"""
rollback_lambda.py — Roll back a Lambda function to its previous alias version.

Moves the `current` alias to the nearest published version below the one it
points to.  Used for emergency rollbacks without a full deploy.

With --delete-version, the version rolled back from is deleted once the
alias read no longer returns it.

Exit codes:
    0  Rollback applied (or reported, with --dry-run)
    1  Rollback failed (no previous version, AWS error, bad function file)
    2  Configuration error (AWS_REGION unset, invalid ROLLBACK_* setting)

Usage:
    uv run python scripts/rollback_lambda.py --function function.json --env <env>

Example:
    uv run python scripts/rollback_lambda.py --function functions/bridge/function.json \\
        --env prod --delete-version

Called by: make infra-rollback-lambda FUNCTION=bridge ENV=prod

Implemented in TASK-028.
"""

from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from typing import Any

from lambda_rollback import RollbackError, RollbackOptions, rollback
from lambda_rollback.config import RollbackSettings, get_aws_region
from lambda_rollback.logging_config import configure_logging
from lambda_rollback.models import DEFAULT_FUNCTION_FILE, ResolveStrategy
from lambda_rollback.store import LambdaVersionStore, build_lambda_client


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--function",
        default=DEFAULT_FUNCTION_FILE,
        help="Function definition file (default function.json)",
    )
    parser.add_argument("--env", default="dev", help="Environment label for operator context")
    parser.add_argument(
        "--dry-run", action="store_true", help="Report the transition without changing anything"
    )
    parser.add_argument(
        "--delete-version",
        action="store_true",
        help="Delete the version rolled back from once the alias has moved",
    )
    parser.add_argument(
        "--resolve-strategy",
        choices=[s.value for s in ResolveStrategy],
        default=None,
        help="How to find the previous version (default scan, or ROLLBACK_RESOLVE_STRATEGY)",
    )
    parser.add_argument(
        "--max-wait-attempts",
        type=int,
        default=None,
        help="Give up deleting after N alias checks (default: wait indefinitely)",
    )
    parser.add_argument(
        "--log-level", default=None, help="Log level (default INFO, or ROLLBACK_LOG_LEVEL)"
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> RollbackSettings:
    settings = RollbackSettings.from_env()
    overrides: dict[str, Any] = {"region": get_aws_region()}
    if args.resolve_strategy is not None:
        overrides["resolve_strategy"] = ResolveStrategy(args.resolve_strategy)
    if args.max_wait_attempts is not None:
        if args.max_wait_attempts < 1:
            raise RuntimeError("--max-wait-attempts must be at least 1")
        overrides["max_wait_attempts"] = args.max_wait_attempts
    return dataclasses.replace(settings, **overrides)


def main(argv: list[str] | None = None, *, lambda_client: Any = None) -> int:
    args = parse_args(argv)

    try:
        configure_logging(args.log_level or os.environ.get("ROLLBACK_LOG_LEVEL", "INFO"))
        settings = build_settings(args)
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    client = lambda_client or build_lambda_client(settings)
    options = RollbackOptions(
        function_file_path=args.function,
        dry_run=args.dry_run,
        delete_version=args.delete_version,
    )
    try:
        result = rollback(LambdaVersionStore(client), options, settings=settings)
    except RollbackError as exc:
        print(f"[{args.env}] rollback failed: {exc}", file=sys.stderr)
        return 1

    print(
        f"[{args.env}] {result.function_name}: {result.current_version} -> "
        f"{result.previous_version} ({result.outcome})"
    )
    if result.deleted_version is not None:
        print(f"deleted_version={result.deleted_version}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
