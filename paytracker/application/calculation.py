"""
Calculation service - cash-flow projection in the user's timezone
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable
from zoneinfo import ZoneInfo

from paytracker.domain.bill import Bill
from paytracker.domain.projection import ProjectionResult, days_until_danger, project, upcoming_bills


class CalculationService:

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def calculate_cash_flow(self, available_money: Decimal, bills: Iterable[Bill],
                            today: date | None = None) -> ProjectionResult:
        return project(available_money, bills, today=today or self.today())

    def days_until_danger(self, available_money: Decimal, bills: Iterable[Bill],
                          today: date | None = None) -> int | None:
        return days_until_danger(available_money, bills, today=today or self.today())

    def upcoming_bills(self, bills: Iterable[Bill], days: int, today: date | None = None) -> list[Bill]:
        return upcoming_bills(bills, days, today=today or self.today())
