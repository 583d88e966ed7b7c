"""
Cash-flow projection.

Walks forward day by day from today, deducting the bills due on each day
from the available balance, and reports where the balance turns negative.

Policy:
  - the walk covers PROJECTION_HORIZON_DAYS days starting today (inclusive)
  - bills on the same day are merged into one deduction entry
  - the first day that ends non-negative is the safe-zone date
  - the first day that ends negative is the danger-zone date; the walk stops there
  - total_bills / remaining_money cover every bill, regardless of the walk
    (so bills already past due count there but never appear in daily_deductions)
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from paytracker.domain.bill import Bill

PROJECTION_HORIZON_DAYS = 60


@dataclass(frozen=True)
class DailyDeduction:
    date: date
    bills: tuple[Bill, ...]
    total_amount: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class ProjectionResult:
    total_bills: Decimal
    remaining_money: Decimal
    safe_zone_end_date: date | None = None
    danger_zone_start_date: date | None = None
    daily_deductions: tuple[DailyDeduction, ...] = field(default_factory=tuple)


def _group_by_day(bills: Iterable[Bill]) -> dict[date, list[Bill]]:
    grouped: dict[date, list[Bill]] = defaultdict(list)
    for bill in sorted(bills, key=lambda b: b.due_date):
        grouped[bill.due_date].append(bill)
    return grouped


def project(
    starting_balance: Decimal,
    bills: Iterable[Bill],
    today: date | None = None,
) -> ProjectionResult:
    """
    Project the running balance over the next PROJECTION_HORIZON_DAYS days.

    Input is assumed validated (non-negative balance, non-negative amounts).

    Args:
        starting_balance: money available today
        bills: bills to deduct
        today: first day of the walk (default: date.today())

    Returns:
        ProjectionResult
    """
    if today is None:
        today = date.today()
    bills = list(bills)
    starting_balance = Decimal(str(starting_balance))

    total_bills = sum((b.amount for b in bills), Decimal("0"))
    by_day = _group_by_day(bills)

    balance = starting_balance
    safe_zone_end_date = None
    danger_zone_start_date = None
    deductions: list[DailyDeduction] = []

    for offset in range(PROJECTION_HORIZON_DAYS):
        day = today + timedelta(days=offset)
        day_bills = by_day.get(day)
        if not day_bills:
            continue

        day_total = sum((b.amount for b in day_bills), Decimal("0"))
        balance -= day_total
        deductions.append(DailyDeduction(
            date=day,
            bills=tuple(day_bills),
            total_amount=day_total,
            remaining_balance=balance,
        ))

        if balance >= 0:
            if safe_zone_end_date is None:
                safe_zone_end_date = day
        else:
            danger_zone_start_date = day
            break

    return ProjectionResult(
        total_bills=total_bills,
        remaining_money=starting_balance - total_bills,
        safe_zone_end_date=safe_zone_end_date,
        danger_zone_start_date=danger_zone_start_date,
        daily_deductions=tuple(deductions),
    )


def days_until_danger(
    starting_balance: Decimal,
    bills: Iterable[Bill],
    today: date | None = None,
) -> int | None:
    """Whole days from today until the balance goes negative, or None if it never does within the horizon"""
    if today is None:
        today = date.today()
    result = project(starting_balance, bills, today=today)
    if result.danger_zone_start_date is None:
        return None
    return max(0, (result.danger_zone_start_date - today).days)


def upcoming_bills(bills: Iterable[Bill], days: int, today: date | None = None) -> list[Bill]:
    """Bills due in [today, today + days), earliest first"""
    if today is None:
        today = date.today()
    end = today + timedelta(days=days)
    return sorted(
        (b for b in bills if today <= b.due_date < end),
        key=lambda b: (b.due_date, b.name),
    )
