"""
Calculator API - cash-flow projection for the current user or an ad-hoc bill list
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from paytracker.api.deps import get_current_user, get_services
from paytracker.api.v1.bills import BillResponse, bill_response
from paytracker.application.container import Services
from paytracker.domain.bill import Bill
from paytracker.domain.profile import Profile
from paytracker.domain.projection import ProjectionResult
from paytracker.utils.money import money_str
from paytracker.utils.validation import validate_and_normalize_amount

router = APIRouter(prefix="/api/v1/calculator", tags=["calculator"])


class AdHocBill(BaseModel):
    name: str
    amount: str
    due_date: date

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class ProjectionRequest(BaseModel):
    available_money: str
    bills: list[AdHocBill]

    @field_validator("available_money")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class DailyDeductionResponse(BaseModel):
    date: date
    bills: list[BillResponse]
    total_amount: str
    remaining_balance: str


class ProjectionResponse(BaseModel):
    total_bills: str
    remaining_money: str
    safe_zone_end_date: date | None
    danger_zone_start_date: date | None
    days_until_danger: int | None
    daily_deductions: list[DailyDeductionResponse]


def _projection_response(result: ProjectionResult, days_until_danger: int | None) -> ProjectionResponse:
    return ProjectionResponse(
        total_bills=money_str(result.total_bills),
        remaining_money=money_str(result.remaining_money),
        safe_zone_end_date=result.safe_zone_end_date,
        danger_zone_start_date=result.danger_zone_start_date,
        days_until_danger=days_until_danger,
        daily_deductions=[
            DailyDeductionResponse(
                date=d.date,
                bills=[bill_response(b) for b in d.bills],
                total_amount=money_str(d.total_amount),
                remaining_balance=money_str(d.remaining_balance),
            )
            for d in result.daily_deductions
        ],
    )


@router.get("/projection", response_model=ProjectionResponse)
def my_projection(user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    """Projection of the user's saved bills against their available money"""
    today = services.calculation.today()
    bills = services.bills.list_bills(user.id)
    result = services.calculation.calculate_cash_flow(user.available_money, bills, today=today)
    days = services.calculation.days_until_danger(user.available_money, bills, today=today)
    return _projection_response(result, days)


@router.post("/projection", response_model=ProjectionResponse)
def adhoc_projection(req: ProjectionRequest, services: Services = Depends(get_services)):
    """Projection for bills that are not saved (no login required)"""
    today = services.calculation.today()
    bills = [
        Bill(id=f"adhoc-{i}", name=b.name, amount=Decimal(b.amount), due_date=b.due_date)
        for i, b in enumerate(req.bills)
    ]
    available = Decimal(req.available_money)
    result = services.calculation.calculate_cash_flow(available, bills, today=today)
    days = services.calculation.days_until_danger(available, bills, today=today)
    return _projection_response(result, days)


@router.get("/upcoming", response_model=list[BillResponse])
def upcoming(days: int = 7, user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    bills = services.bills.list_bills(user.id)
    return [bill_response(b) for b in services.calculation.upcoming_bills(bills, days)]
