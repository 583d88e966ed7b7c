"""
User profile domain entity
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping


class ProfileValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Profile:
    """
    Profile row as seen by the application.

    `id` is the primary key issued by the auth provider, `email` is the
    secondary key. A profile returned by the auth flow is always
    authenticated; anonymous visitors have no profile at all.
    """
    id: str
    email: str
    is_premium: bool = False
    available_money: Decimal = Decimal("0")
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Profile":
        if not row.get("id"):
            raise ProfileValidationError("Profile row has no id")
        if row.get("email") is None:
            raise ProfileValidationError(f"Profile {row['id']} has no email")

        raw_money = row.get("available_money")
        try:
            money = Decimal(str(raw_money)) if raw_money is not None else Decimal("0")
        except (InvalidOperation, ValueError) as exc:
            raise ProfileValidationError(f"Invalid available_money: {raw_money!r}") from exc

        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=str(row["id"]),
            email=str(row["email"]),
            is_premium=bool(row.get("is_premium") or False),
            available_money=money,
            created_at=created_at,
        )
