"""Unit tests for lambda_rollback.rollback against an in-memory store."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from lambda_rollback import (
    AliasReadError,
    AliasUpdateError,
    ConfigLoadError,
    DeletionGuardReadError,
    NoPreviousVersionError,
    RollbackOptions,
    RollbackResult,
    VersionLookupError,
    VersionParseError,
    rollback,
)
from lambda_rollback.config import RollbackSettings
from lambda_rollback.models import FunctionDefinition, ResolveStrategy, RollbackOutcome

from tests.unit.fakes import FakeVersionStore

FUNCTION = "bridge"
MUTATING_CALLS = {"update_alias", "delete"}


def _loader(path: str) -> FunctionDefinition:
    return FunctionDefinition(function_name=FUNCTION, raw={"FunctionName": FUNCTION})


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _run(store: FakeVersionStore, **kwargs) -> RollbackResult:
    options = RollbackOptions(
        function_file_path="function.json",
        dry_run=kwargs.pop("dry_run", False),
        delete_version=kwargs.pop("delete_version", False),
    )
    kwargs.setdefault("loader", _loader)
    kwargs.setdefault("sleep", lambda _seconds: None)
    return rollback(store, options, **kwargs)


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


def test_rolls_back_over_missing_version() -> None:
    store = FakeVersionStore(alias="5", versions=[1, 2, 3, 5])

    result = _run(store)

    assert store.alias == "3"
    assert result.current_version == "5"
    assert result.previous_version == "3"
    assert result.deleted_version is None
    assert result.outcome is RollbackOutcome.ROLLED_BACK


def test_without_delete_version_updates_once_and_never_deletes() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 4, 5])

    _run(store)

    assert store.count("update_alias") == 1
    assert store.count("delete") == 0
    assert ("update_alias", "4") in store.calls


def test_delete_version_waits_for_alias_then_deletes_rolled_back_version() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5], stale_reads=2)

    result = _run(store, delete_version=True)

    assert store.count("update_alias") == 1
    assert store.count("delete") == 1
    assert ("delete", "5") in store.calls
    assert "5" not in store.versions
    assert result.deleted_version == "5"
    assert result.outcome is RollbackOutcome.ROLLED_BACK_AND_DELETED

    # After the update: two stale reads, one read returning "3", then delete.
    names = store.call_names()
    after_update = names[names.index("update_alias") + 1 :]
    assert after_update == ["get_alias", "get_alias", "get_alias", "delete"]


def test_delete_uses_settings_for_polling() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5], stale_reads=2)
    sleeps: list[float] = []
    settings = RollbackSettings(poll_interval_seconds=0.25)

    _run(store, delete_version=True, settings=settings, sleep=sleeps.append)

    assert sleeps == [0.25, 0.25]


def test_listing_strategy_from_settings() -> None:
    store = FakeVersionStore(alias="5", versions=[2, 5])
    settings = RollbackSettings(resolve_strategy=ResolveStrategy.LISTING)

    result = _run(store, settings=settings)

    assert result.previous_version == "2"
    assert store.count("get_function") == 0


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("delete_version", [False, True])
@pytest.mark.parametrize(
    ("alias", "versions"),
    [("5", [3, 5]), ("2", [1, 2]), ("9", [1, 4, 9])],
)
def test_dry_run_never_mutates(alias: str, versions: list[int], delete_version: bool) -> None:
    store = FakeVersionStore(alias=alias, versions=versions)

    result = _run(store, dry_run=True, delete_version=delete_version)

    assert MUTATING_CALLS.isdisjoint(store.call_names())
    assert store.alias == alias
    assert result.outcome is RollbackOutcome.DRY_RUN
    assert result.deleted_version is None


def test_dry_run_is_repeatable() -> None:
    store = FakeVersionStore(alias="5", versions=[1, 3, 5])

    first = _run(store, dry_run=True)
    second = _run(store, dry_run=True)

    assert first == second
    assert store.alias == "5"
    assert store.versions == {"1", "3", "5"}


def test_dry_run_logs_labelled_transition_before_returning() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    log = MagicMock()

    _run(store, dry_run=True, log=log)

    messages = [c.args[0] for c in log.info.call_args_list]
    assert "rolling back function version 5 to 3 **DRY RUN**" in messages


def test_transition_is_logged_without_label_outside_dry_run() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    log = MagicMock()

    _run(store, log=log)

    messages = [c.args[0] for c in log.info.call_args_list]
    assert "rolling back function version 5 to 3" in messages


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_only_one_version_fails_with_no_previous_version() -> None:
    store = FakeVersionStore(alias="1", versions=[1])

    with pytest.raises(NoPreviousVersionError, match="unable to detect previous version"):
        _run(store, delete_version=True)

    assert store.call_names() == ["get_alias"]


def test_malformed_version_aborts_before_any_lookup() -> None:
    store = FakeVersionStore(alias="5a", versions=[3])

    with pytest.raises(VersionParseError) as exc_info:
        _run(store)

    assert exc_info.value.raw == "5a"
    assert store.call_names() == ["get_alias"]


def test_alias_read_failure_is_wrapped() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    store.alias_read_error = _client_error("ResourceNotFoundException", "GetAlias")

    with pytest.raises(AliasReadError, match="failed to get alias current") as exc_info:
        _run(store)

    assert isinstance(exc_info.value.__cause__, ClientError)
    assert exc_info.value.function_name == FUNCTION


def test_lookup_failure_aborts_without_mutation() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    store.lookup_errors["4"] = _client_error("ServiceException", "GetFunction")

    with pytest.raises(VersionLookupError):
        _run(store)

    assert MUTATING_CALLS.isdisjoint(store.call_names())


def test_alias_update_failure_stops_before_delete() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    store.update_error = _client_error("ResourceConflictException", "UpdateAlias")

    with pytest.raises(AliasUpdateError, match="to version 3"):
        _run(store, delete_version=True)

    assert store.count("delete") == 0
    assert store.count("get_alias") == 1


def test_guard_failure_is_final_outcome() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    store.alias_read_error_after_update = _client_error("AccessDeniedException", "GetAlias")

    with pytest.raises(DeletionGuardReadError):
        _run(store, delete_version=True)

    assert store.alias == "3"
    assert store.count("delete") == 0


def test_loader_config_error_passes_through() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])

    def _failing_loader(path: str) -> FunctionDefinition:
        raise ConfigLoadError("failed to load function: boom", path=path)

    with pytest.raises(ConfigLoadError, match="boom"):
        _run(store, loader=_failing_loader)
    assert store.calls == []


def test_unexpected_loader_error_is_wrapped() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])

    def _failing_loader(path: str) -> FunctionDefinition:
        raise ValueError("unsupported format")

    with pytest.raises(ConfigLoadError) as exc_info:
        _run(store, loader=_failing_loader)
    assert exc_info.value.path == "function.json"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_transition_is_logged_before_alias_update() -> None:
    store = FakeVersionStore(alias="5", versions=[3, 5])
    events: list[str] = []
    log = MagicMock()
    log.info.side_effect = lambda message, **_kw: events.append(f"log:{message}")
    update = store.update_alias_target

    def _recording_update(function_name: str, alias_name: str, version: str) -> None:
        events.append(f"update:{version}")
        update(function_name, alias_name, version)

    store.update_alias_target = _recording_update  # type: ignore[method-assign]

    _run(store, log=log)

    assert "log:rolling back function version 5 to 3" in events
    assert events.index("log:rolling back function version 5 to 3") < events.index("update:3")
