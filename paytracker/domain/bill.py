"""
Bill domain entity.

A bill is owned by exactly one user profile. Its due date has day
granularity: any time-of-day component is dropped when a row is read.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping


class NotificationFrequency(str, Enum):
    NONE = "none"
    ONE_DAY = "1_day"
    THREE_DAYS = "3_days"
    ONE_WEEK = "1_week"
    TWO_WEEKS = "2_weeks"

    @property
    def days_before(self) -> int | None:
        """How many days before the due date the reminder fires (None = never)."""
        return _REMINDER_OFFSETS[self]


_REMINDER_OFFSETS = {
    NotificationFrequency.NONE: None,
    NotificationFrequency.ONE_DAY: 1,
    NotificationFrequency.THREE_DAYS: 3,
    NotificationFrequency.ONE_WEEK: 7,
    NotificationFrequency.TWO_WEEKS: 14,
}

_REQUIRED_FIELDS = ("id", "name", "amount", "due_date")


class BillValidationError(ValueError):
    """Row does not describe a valid bill"""
    pass


def to_day(value: date | datetime | str) -> date:
    """
    Reduce a date-like value to a calendar day.

    Accepts date, datetime (time-of-day discarded) and ISO strings
    ("2026-01-31" or "2026-01-31T10:00:00").
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as exc:
            raise BillValidationError(f"Invalid date: {value!r}") from exc
    raise BillValidationError(f"Invalid date: {value!r}")


def to_amount(value: Any) -> Decimal:
    """Parse a money value into a non-negative Decimal"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise BillValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise BillValidationError(f"Invalid amount: {value!r}")
    return amount


def _to_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise BillValidationError(f"Invalid timestamp: {value!r}")


@dataclass(frozen=True)
class BillDraft:
    """Fields supplied by the user when creating a bill"""
    name: str
    amount: Decimal
    due_date: date
    notification_frequency: NotificationFrequency = NotificationFrequency.NONE
    reminder_enabled: bool = False

    def __post_init__(self):
        object.__setattr__(self, "due_date", to_day(self.due_date))


@dataclass(frozen=True)
class Bill:
    id: str
    name: str
    amount: Decimal
    due_date: date
    notification_frequency: NotificationFrequency = NotificationFrequency.NONE
    reminder_enabled: bool = False
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        # day granularity holds however the bill was built
        object.__setattr__(self, "due_date", to_day(self.due_date))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Bill":
        """
        Build a Bill from a store row, validating its shape

        Raises:
            BillValidationError: missing field, bad amount/date/frequency
        """
        missing = [f for f in _REQUIRED_FIELDS if row.get(f) is None]
        if missing:
            raise BillValidationError(f"Bill row is missing fields: {', '.join(missing)}")

        try:
            frequency = NotificationFrequency(row.get("notification_frequency") or NotificationFrequency.NONE)
        except ValueError as exc:
            raise BillValidationError(
                f"Unknown notification frequency: {row.get('notification_frequency')!r}"
            ) from exc

        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            amount=to_amount(row["amount"]),
            due_date=to_day(row["due_date"]),
            notification_frequency=frequency,
            reminder_enabled=bool(row.get("reminder_enabled", False)),
            user_id=row.get("user_id"),
            created_at=_to_timestamp(row.get("created_at")),
            updated_at=_to_timestamp(row.get("updated_at")),
        )

    def reminder_date(self) -> date | None:
        """Day on which the reminder for this bill is due, or None"""
        offset = self.notification_frequency.days_before
        if offset is None:
            return None
        return self.due_date - timedelta(days=offset)
