"""
Tests for the reconcile_users maintenance script
"""
from decimal import Decimal
from unittest.mock import Mock

import pytest

import reconcile_users
from paytracker.application.reconciliation import ProfileResolver
from paytracker.config import Settings
from paytracker.infrastructure.auth.base import AuthError, AuthIdentity
from paytracker.infrastructure.store.base import BILLS, USERS, RecordStoreError
from paytracker.infrastructure.store.memory import InMemoryRecordStore


@pytest.fixture
def memory_store(make_profile_row):
    store = InMemoryRecordStore()
    store.insert(USERS, make_profile_row("auth-1", "ok@example.com"))
    store.insert(USERS, make_profile_row("old-2", "moved@example.com", "42"))
    store.insert(USERS, make_profile_row("dup-a", "dup@example.com"))
    store.insert(USERS, make_profile_row("dup-b", "dup@example.com"))
    store.insert(BILLS, {"id": "b-1", "user_id": "old-2", "name": "Rent", "amount": Decimal("1"),
                         "due_date": "2026-04-01", "notification_frequency": "none"})
    return store


@pytest.fixture
def provider():
    provider = Mock()
    provider.list_users.return_value = [
        AuthIdentity("auth-1", "ok@example.com"),
        AuthIdentity("auth-2", "moved@example.com"),
        AuthIdentity("auth-3", "fresh@example.com"),
    ]
    return provider


def test_build_report(memory_store, provider):
    report = reconcile_users.build_report(memory_store, provider)

    assert report.duplicate_emails == {"dup@example.com": 2}
    assert [u.user_id for u in report.missing_profiles] == ["auth-2", "auth-3"]


def test_apply_report_merges_and_creates(memory_store, provider):
    report = reconcile_users.build_report(memory_store, provider)

    reconcile_users.apply_report(report, ProfileResolver(memory_store))

    assert report.resolved == ["auth-2", "auth-3"]
    assert report.failed == []
    assert memory_store.select_eq(USERS, "id", "auth-2")[0]["available_money"] == Decimal("42")
    assert memory_store.select_eq(BILLS, "id", "b-1")[0]["user_id"] == "auth-2"
    assert memory_store.select_eq(USERS, "id", "auth-3")


def test_apply_report_continues_after_failure(memory_store, provider):
    report = reconcile_users.build_report(memory_store, provider)
    memory_store.upsert = Mock(side_effect=RecordStoreError("write failed"))

    reconcile_users.apply_report(report, ProfileResolver(memory_store))

    assert report.failed == ["auth-2"]
    assert report.resolved == ["auth-3"]


@pytest.fixture
def wired(monkeypatch, memory_store, provider):
    closed = []
    monkeypatch.setattr(reconcile_users, "get_settings", lambda: Settings(STORAGE_BACKEND="memory"))
    monkeypatch.setattr(reconcile_users, "build_store_opener",
                        lambda settings: lambda: (memory_store, lambda: closed.append(True)))
    monkeypatch.setattr(reconcile_users, "build_auth_provider", lambda settings: provider)
    return closed


def test_main_dry_run_writes_nothing(wired, memory_store):
    assert reconcile_users.main([]) == 0

    assert memory_store.select_eq(USERS, "id", "auth-2") == []
    assert wired == [True]


def test_main_apply(wired, memory_store):
    assert reconcile_users.main(["--apply"]) == 0

    assert memory_store.select_eq(USERS, "id", "auth-2")


def test_main_provider_error(wired, provider):
    provider.list_users.side_effect = AuthError("Listing users requires AUTH_PROVIDER_SERVICE_KEY")

    assert reconcile_users.main([]) == 1
    assert wired == [True]
