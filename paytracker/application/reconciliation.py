"""
Profile reconciliation.

The auth provider owns the user identity (primary key). A profile row may
still exist under an older identity with the same email, e.g. after the
auth account was recreated. Resolving the profile for (primary key, email):

  A. found by primary key           -> return it, no writes
  B. missing by key, found by email -> merge: upsert profile under the new
                                       key (conflict on email), then move the
                                       old key's bills to the new key
  C. missing by both                -> create a fresh profile

State B runs under a per-email advisory lock and re-checks the primary key
once the lock is held, so two sessions racing on the same email converge
on a single merge. Steps of the merge are not transactional; a failure in
either raises ProfileMergeError and the caller must not treat the user as
logged in.
"""
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from paytracker.domain.profile import Profile
from paytracker.infrastructure.store.base import BILLS, USERS, RecordStore, RecordStoreError, Row

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    FOUND_BY_PRIMARY_KEY = "found_by_primary_key"
    MERGED_FROM_EMAIL = "merged_from_email"
    CREATED = "created"


class ProfileMergeError(RuntimeError):
    """Merging an orphaned profile into the authenticated identity failed"""

    def __init__(self, primary_key: str, email: str, step: str, reason: str):
        super().__init__(f"Failed to reconcile profile for {email} ({step}): {reason}")
        self.primary_key = primary_key
        self.email = email
        self.step = step


@dataclass(frozen=True)
class StoreOperation:
    """A write applied to the store while resolving"""
    kind: str      # insert | upsert | update
    table: str
    detail: dict[str, Any]


@dataclass
class Resolution:
    profile: Profile
    state: ResolutionState
    operations: list[StoreOperation] = field(default_factory=list)


class EmailLockRegistry:
    """
    Per-email advisory locks shared by every resolver of one process.

    Emails map onto a fixed pool of locks, so unrelated emails may share a
    lock but memory stays constant however many emails pass through.
    """

    POOL_SIZE = 64

    def __init__(self, pool_size: int = POOL_SIZE):
        self._locks = [threading.Lock() for _ in range(pool_size)]

    def lock_for(self, email: str) -> threading.Lock:
        return self._locks[hash(email.strip().lower()) % len(self._locks)]



def find_duplicate_emails(store: RecordStore) -> dict[str, list[Row]]:
    """Emails shared by more than one profile row"""
    by_email: dict[str, list[Row]] = defaultdict(list)
    for row in store.select_all(USERS):
        by_email[row.get("email") or ""].append(row)
    return {email: rows for email, rows in by_email.items() if len(rows) > 1}


class ProfileResolver:

    def __init__(self, store: RecordStore, locks: EmailLockRegistry | None = None):
        self.store = store
        self.locks = locks or EmailLockRegistry()

    def _by_primary_key(self, primary_key: str) -> Row | None:
        rows = self.store.select_eq(USERS, "id", primary_key)
        return rows[0] if rows else None

    def resolve(self, primary_key: str, email: str) -> Resolution:
        """
        Fetch or establish the profile for an authenticated identity

        Args:
            primary_key: user id issued by the auth provider
            email: email the provider reports for that identity

        Returns:
            Resolution with the profile and the writes that were applied

        Raises:
            ProfileMergeError: state B started but did not complete
            RecordStoreError: lookups or the state C insert failed
        """
        row = self._by_primary_key(primary_key)
        if row is not None:
            return Resolution(Profile.from_row(row), ResolutionState.FOUND_BY_PRIMARY_KEY)

        logger.info("Profile not found by id %s, looking up by email %s", primary_key, email)
        by_email = self.store.select_eq(USERS, "email", email)
        if len(by_email) > 1:
            logger.warning(
                "Email %s is shared by %d profile rows (%s); merging the first one",
                email, len(by_email), ", ".join(str(r.get("id")) for r in by_email),
            )

        if by_email:
            return self._merge(primary_key, email, by_email[0])
        return self._create(primary_key, email)

    def _merge(self, primary_key: str, email: str, source: Row) -> Resolution:
        old_id = source.get("id")
        with self.locks.lock_for(email):
            row = self._by_primary_key(primary_key)
            if row is not None:
                logger.info("Profile %s was reconciled concurrently", primary_key)
                return Resolution(Profile.from_row(row), ResolutionState.FOUND_BY_PRIMARY_KEY)

            logger.info("Reconciling profile %s -> %s (email %s)", old_id, primary_key, email)
            operations = []

            is_premium = source.get("is_premium")
            available_money = source.get("available_money")
            profile_row = {
                "id": primary_key,
                "email": email,
                "is_premium": False if is_premium is None else is_premium,
                "available_money": Decimal("0") if available_money is None else available_money,
            }
            try:
                merged = self.store.upsert(USERS, profile_row, conflict_column="email")
            except RecordStoreError as exc:
                logger.error("Upsert of profile %s failed: %s", primary_key, exc)
                raise ProfileMergeError(primary_key, email, "upsert_profile", str(exc)) from exc
            operations.append(StoreOperation("upsert", USERS, {"id": primary_key, "conflict_column": "email"}))

            if old_id and old_id != primary_key:
                try:
                    moved = self.store.update(BILLS, {"user_id": primary_key}, "user_id", old_id)
                except RecordStoreError as exc:
                    logger.error("Transfer of bills %s -> %s failed: %s", old_id, primary_key, exc)
                    raise ProfileMergeError(primary_key, email, "reassign_bills", str(exc)) from exc
                operations.append(StoreOperation(
                    "update", BILLS, {"from_user_id": old_id, "to_user_id": primary_key, "rows": len(moved)},
                ))
                logger.info("Moved %d bill(s) from %s to %s", len(moved), old_id, primary_key)

        return Resolution(Profile.from_row(merged), ResolutionState.MERGED_FROM_EMAIL, operations)

    def _create(self, primary_key: str, email: str) -> Resolution:
        row = self.store.insert(USERS, {
            "id": primary_key,
            "email": email,
            "is_premium": False,
            "available_money": Decimal("0"),
            "created_at": datetime.now(timezone.utc),
        })
        logger.info("Created missing profile %s for %s", primary_key, email)
        return Resolution(
            Profile.from_row(row),
            ResolutionState.CREATED,
            [StoreOperation("insert", USERS, {"id": primary_key})],
        )
