"""
Tests for profile reconciliation (ProfileResolver)
"""
import logging
import threading
from datetime import date
from decimal import Decimal

import pytest

from paytracker.application.reconciliation import (
    EmailLockRegistry,
    ProfileMergeError,
    ProfileResolver,
    ResolutionState,
    find_duplicate_emails,
)
from paytracker.infrastructure.store.base import BILLS, USERS, RecordStoreError
from paytracker.infrastructure.store.memory import InMemoryRecordStore


class RecordingStore(InMemoryRecordStore):
    """In-memory store that records writes and can fail on demand"""

    def __init__(self):
        super().__init__()
        self.writes = []
        self.fail_on = set()

    def _write(self, kind, table):
        if (kind, table) in self.fail_on:
            raise RecordStoreError(f"{kind} on {table} rejected")
        self.writes.append((kind, table))

    def insert(self, table, row):
        self._write("insert", table)
        return super().insert(table, row)

    def update(self, table, patch, column, value):
        self._write("update", table)
        return super().update(table, patch, column, value)

    def upsert(self, table, row, conflict_column):
        self._write("upsert", table)
        return super().upsert(table, row, conflict_column)

    def delete(self, table, column, value):
        self._write("delete", table)
        return super().delete(table, column, value)


def add_bill(store, bill_id, user_id):
    InMemoryRecordStore.insert(store, BILLS, {
        "id": bill_id, "user_id": user_id, "name": bill_id, "amount": Decimal("10"),
        "due_date": date(2026, 3, 12), "notification_frequency": "none", "reminder_enabled": False,
    })


@pytest.fixture
def recording_store():
    return RecordingStore()


def test_found_by_primary_key_has_no_side_effects(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("auth-1", "a@b.com", "15"))

    resolution = ProfileResolver(recording_store).resolve("auth-1", "a@b.com")

    assert resolution.state is ResolutionState.FOUND_BY_PRIMARY_KEY
    assert resolution.profile.available_money == Decimal("15")
    assert resolution.operations == []
    assert recording_store.writes == []


def test_merge_from_email_moves_profile_and_bills(store, make_profile_row):
    """Primary key auth-999 misses, email a@b.com hits old-1 with 42 available"""
    store.insert(USERS, make_profile_row("old-1", "a@b.com", "42"))
    store.insert(USERS, make_profile_row("someone", "other@b.com"))
    for bill_id in ("b-1", "b-2"):
        store.insert(BILLS, {
            "id": bill_id, "user_id": "old-1", "name": bill_id, "amount": Decimal("10"),
            "due_date": date(2026, 3, 12), "notification_frequency": "none", "reminder_enabled": False,
        })
    store.insert(BILLS, {
        "id": "b-3", "user_id": "someone", "name": "b-3", "amount": Decimal("1"),
        "due_date": date(2026, 3, 12), "notification_frequency": "none", "reminder_enabled": False,
    })

    resolution = ProfileResolver(store).resolve("auth-999", "a@b.com")

    assert resolution.state is ResolutionState.MERGED_FROM_EMAIL
    assert resolution.profile.id == "auth-999"
    assert resolution.profile.available_money == Decimal("42")
    assert resolution.profile.is_premium is False
    assert [r["id"] for r in store.select_eq(USERS, "email", "a@b.com")] == ["auth-999"]
    assert sorted(r["id"] for r in store.select_eq(BILLS, "user_id", "auth-999")) == ["b-1", "b-2"]
    assert store.select_eq(BILLS, "user_id", "old-1") == []
    assert [r["id"] for r in store.select_eq(BILLS, "user_id", "someone")] == ["b-3"]
    assert [op.kind for op in resolution.operations] == ["upsert", "update"]


def test_merge_carries_premium_flag(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-1", "a@b.com", "5", is_premium=True))

    resolution = ProfileResolver(recording_store).resolve("auth-2", "a@b.com")

    assert resolution.profile.is_premium is True


def test_merge_defaults_missing_fields(recording_store):
    InMemoryRecordStore.insert(recording_store, USERS, {"id": "old-1", "email": "a@b.com"})

    resolution = ProfileResolver(recording_store).resolve("auth-2", "a@b.com")

    assert resolution.profile.is_premium is False
    assert resolution.profile.available_money == Decimal("0")


def test_no_profile_creates_fresh_one(store):
    resolution = ProfileResolver(store).resolve("auth-new", "new@b.com")

    assert resolution.state is ResolutionState.CREATED
    assert resolution.profile.id == "auth-new"
    assert resolution.profile.email == "new@b.com"
    assert resolution.profile.available_money == Decimal("0")
    assert resolution.profile.is_premium is False
    assert len(store.select_eq(USERS, "id", "auth-new")) == 1


def test_second_resolution_performs_no_writes(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-1", "a@b.com", "42"))
    add_bill(recording_store, "b-1", "old-1")
    resolver = ProfileResolver(recording_store)

    first = resolver.resolve("auth-999", "a@b.com")
    writes_after_first = list(recording_store.writes)
    second = resolver.resolve("auth-999", "a@b.com")

    assert first.state is ResolutionState.MERGED_FROM_EMAIL
    assert second.state is ResolutionState.FOUND_BY_PRIMARY_KEY
    assert second.operations == []
    assert recording_store.writes == writes_after_first


def test_recheck_under_lock_returns_existing_profile(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("auth-1", "a@b.com"))
    resolver = ProfileResolver(recording_store)
    # primary key lookup misses once, as if the row appeared in between
    original = recording_store.select_eq
    calls = {"n": 0}

    def flaky_select(table, column, value):
        if table == USERS and column == "id" and calls["n"] == 0:
            calls["n"] += 1
            return []
        return original(table, column, value)

    recording_store.select_eq = flaky_select
    resolution = resolver.resolve("auth-1", "a@b.com")

    assert resolution.state is ResolutionState.FOUND_BY_PRIMARY_KEY
    assert recording_store.writes == []


def test_upsert_failure_is_a_merge_error(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-1", "a@b.com"))
    recording_store.fail_on.add(("upsert", USERS))

    with pytest.raises(ProfileMergeError) as exc_info:
        ProfileResolver(recording_store).resolve("auth-999", "a@b.com")

    assert exc_info.value.step == "upsert_profile"
    assert exc_info.value.primary_key == "auth-999"
    assert "rejected" in str(exc_info.value)


def test_bill_transfer_failure_is_a_merge_error(recording_store, make_profile_row):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-1", "a@b.com"))
    add_bill(recording_store, "b-1", "old-1")
    recording_store.fail_on.add(("update", BILLS))

    with pytest.raises(ProfileMergeError) as exc_info:
        ProfileResolver(recording_store).resolve("auth-999", "a@b.com")

    assert exc_info.value.step == "reassign_bills"


def test_create_failure_is_not_a_merge_error(recording_store):
    recording_store.fail_on.add(("insert", USERS))

    with pytest.raises(RecordStoreError):
        ProfileResolver(recording_store).resolve("auth-1", "a@b.com")


def test_duplicate_emails_are_logged_and_first_row_wins(recording_store, make_profile_row, caplog):
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-1", "a@b.com", "7"))
    InMemoryRecordStore.insert(recording_store, USERS, make_profile_row("old-2", "a@b.com", "99"))
    add_bill(recording_store, "b-1", "old-1")
    add_bill(recording_store, "b-2", "old-2")

    with caplog.at_level(logging.WARNING, logger="paytracker.application.reconciliation"):
        resolution = ProfileResolver(recording_store).resolve("auth-9", "a@b.com")

    assert "shared by 2 profile rows" in caplog.text
    assert resolution.profile.available_money == Decimal("7")
    assert [r["id"] for r in recording_store.select_eq(BILLS, "user_id", "auth-9")] == ["b-1"]


def test_concurrent_resolutions_merge_once(make_profile_row):
    store = RecordingStore()
    InMemoryRecordStore.insert(store, USERS, make_profile_row("old-1", "a@b.com", "42"))
    add_bill(store, "b-1", "old-1")
    locks = EmailLockRegistry()
    barrier = threading.Barrier(4)
    states = []

    def worker():
        barrier.wait()
        states.append(ProfileResolver(store, locks).resolve("auth-999", "a@b.com").state)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [r["id"] for r in store.select_eq(USERS, "email", "a@b.com")] == ["auth-999"]
    assert store.select_eq(BILLS, "user_id", "auth-999")[0]["id"] == "b-1"
    assert store.writes.count(("upsert", USERS)) == 1
    assert states.count(ResolutionState.MERGED_FROM_EMAIL) == 1


def test_lock_registry_normalizes_email():
    locks = EmailLockRegistry()

    assert locks.lock_for("A@B.com ") is locks.lock_for("a@b.com")


def test_find_duplicate_emails(make_profile_row):
    memory = InMemoryRecordStore()
    memory.insert(USERS, make_profile_row("u-1", "dup@b.com"))
    memory.insert(USERS, make_profile_row("u-2", "single@b.com"))

    assert find_duplicate_emails(memory) == {}

    memory.insert(USERS, make_profile_row("u-3", "dup@b.com"))

    duplicates = find_duplicate_emails(memory)
    assert list(duplicates) == ["dup@b.com"]
    assert [r["id"] for r in duplicates["dup@b.com"]] == ["u-1", "u-3"]


def test_lock_registry_stays_bounded():
    locks = EmailLockRegistry(pool_size=8)

    distinct = {id(locks.lock_for(f"user{i}@example.com")) for i in range(1000)}

    assert len(distinct) <= 8
    assert len(locks._locks) == 8
