"""
Bill API endpoints
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator

from paytracker.api.deps import get_current_user, get_services
from paytracker.application.container import Services
from paytracker.domain.bill import Bill, BillDraft, NotificationFrequency
from paytracker.domain.profile import Profile
from paytracker.utils.money import money_str
from paytracker.utils.validation import validate_and_normalize_amount

router = APIRouter(prefix="/api/v1/bills", tags=["bills"])


# === Request/Response models ===

class CreateBillRequest(BaseModel):
    name: str
    amount: str
    due_date: date
    notification_frequency: NotificationFrequency = NotificationFrequency.NONE
    reminder_enabled: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class UpdateBillRequest(BaseModel):
    name: str | None = None
    amount: str | None = None
    due_date: date | None = None
    notification_frequency: NotificationFrequency | None = None
    reminder_enabled: bool | None = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_and_normalize_amount(v, max_decimal_places=2)


class BillResponse(BaseModel):
    id: str
    name: str
    amount: str  # Decimal as string
    due_date: date
    notification_frequency: NotificationFrequency
    reminder_enabled: bool


def bill_response(bill: Bill) -> BillResponse:
    return BillResponse(
        id=bill.id,
        name=bill.name,
        amount=money_str(bill.amount),
        due_date=bill.due_date,
        notification_frequency=bill.notification_frequency,
        reminder_enabled=bill.reminder_enabled,
    )


# === Endpoints ===

@router.get("/", response_model=list[BillResponse])
def list_bills(user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    return [bill_response(b) for b in services.bills.list_bills(user.id)]


@router.post("/", response_model=BillResponse)
def create_bill(
    req: CreateBillRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    bill = services.bills.add_bill(user.id, BillDraft(
        name=req.name,
        amount=Decimal(req.amount),
        due_date=req.due_date,
        notification_frequency=req.notification_frequency,
        reminder_enabled=req.reminder_enabled,
    ))
    return bill_response(bill)


@router.get("/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: str, user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    bill = services.bills.get_bill(user.id, bill_id)
    if bill is None:
        raise HTTPException(status_code=404, detail=f"Bill with id {bill_id} not found")
    return bill_response(bill)


@router.patch("/{bill_id}", response_model=BillResponse)
def update_bill(
    bill_id: str,
    req: UpdateBillRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    changes = req.model_dump(exclude_none=True)
    if "amount" in changes:
        changes["amount"] = Decimal(changes["amount"])
    return bill_response(services.bills.update_bill(user.id, bill_id, **changes))


@router.delete("/{bill_id}")
def delete_bill(bill_id: str, user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    services.bills.delete_bill(user.id, bill_id)
    return {"ok": True}


@router.delete("/")
def clear_bills(user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    removed = services.bills.clear_all_bills(user.id)
    return {"ok": True, "removed": removed}


@router.put("/{bill_id}/reminder", response_model=BillResponse)
def schedule_reminder(bill_id: str, user: Profile = Depends(get_current_user),
                      services: Services = Depends(get_services)):
    return bill_response(services.reminders.schedule_reminder(user.id, bill_id))


@router.delete("/{bill_id}/reminder", response_model=BillResponse)
def cancel_reminder(bill_id: str, user: Profile = Depends(get_current_user),
                    services: Services = Depends(get_services)):
    return bill_response(services.reminders.cancel_reminder(user.id, bill_id))


@router.get("/{bill_id}/reminder")
def reminder_status(bill_id: str, user: Profile = Depends(get_current_user),
                    services: Services = Depends(get_services)):
    return {"bill_id": bill_id, "reminder_enabled": services.reminders.get_reminder_status(user.id, bill_id)}


@router.post("/reminders/test")
def send_test_reminder(user: Profile = Depends(get_current_user), services: Services = Depends(get_services)):
    services.reminders.send_test_reminder(user.email)
    return {"ok": True}
