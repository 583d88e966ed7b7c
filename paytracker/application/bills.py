"""
Bill use cases - CRUD over the record store, scoped to the owning user
"""
import logging
import uuid
from datetime import datetime, timezone

from paytracker.domain.bill import Bill, BillDraft, NotificationFrequency, to_amount, to_day
from paytracker.infrastructure.store.base import BILLS, RecordStore

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"name", "amount", "due_date", "notification_frequency", "reminder_enabled"}


class BillNotFoundError(LookupError):
    def __init__(self, bill_id: str):
        super().__init__(f"Bill with id {bill_id} not found")
        self.bill_id = bill_id


def _to_row_value(field_name: str, value):
    if field_name == "amount":
        return to_amount(value)
    if field_name == "due_date":
        return to_day(value)
    if field_name == "notification_frequency":
        return NotificationFrequency(value).value
    if field_name == "reminder_enabled":
        return bool(value)
    return value


class BillService:

    def __init__(self, store: RecordStore):
        self.store = store

    def list_bills(self, user_id: str) -> list[Bill]:
        """All bills of a user, earliest due date first"""
        rows = self.store.select_eq(BILLS, "user_id", user_id)
        return sorted((Bill.from_row(r) for r in rows), key=lambda b: (b.due_date, b.name))

    def get_bill(self, user_id: str, bill_id: str) -> Bill | None:
        """Bill by id, or None if missing or owned by someone else"""
        for row in self.store.select_eq(BILLS, "id", bill_id):
            if row.get("user_id") == user_id:
                return Bill.from_row(row)
        return None

    def add_bill(self, user_id: str, draft: BillDraft) -> Bill:
        now = datetime.now(timezone.utc)
        row = self.store.insert(BILLS, {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "name": draft.name,
            "amount": to_amount(draft.amount),
            "due_date": to_day(draft.due_date),
            "notification_frequency": NotificationFrequency(draft.notification_frequency).value,
            "reminder_enabled": draft.reminder_enabled,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Bill %s added for user %s", row["id"], user_id)
        return Bill.from_row(row)

    def update_bill(self, user_id: str, bill_id: str, /, **changes) -> Bill:
        """
        Change name/amount/due date/reminder settings of a bill

        Raises:
            BillNotFoundError: no such bill for this user
            ValueError: unknown field in changes
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Bill fields cannot be updated: {', '.join(sorted(unknown))}")
        if self.get_bill(user_id, bill_id) is None:
            raise BillNotFoundError(bill_id)

        patch = {name: _to_row_value(name, value) for name, value in changes.items()}
        patch["updated_at"] = datetime.now(timezone.utc)
        rows = self.store.update(BILLS, patch, "id", bill_id)
        if not rows:
            raise BillNotFoundError(bill_id)
        return Bill.from_row(rows[0])

    def delete_bill(self, user_id: str, bill_id: str) -> None:
        if self.get_bill(user_id, bill_id) is None:
            raise BillNotFoundError(bill_id)
        self.store.delete(BILLS, "id", bill_id)
        logger.info("Bill %s deleted", bill_id)

    def clear_all_bills(self, user_id: str) -> int:
        removed = self.store.delete(BILLS, "user_id", user_id)
        logger.info("Cleared %d bill(s) for user %s", removed, user_id)
        return removed
