"""
Auth API endpoints (register, login, logout, current user)
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, field_validator

from paytracker.api.deps import get_current_user, get_services
from paytracker.application.container import Services
from paytracker.domain.profile import Profile
from paytracker.utils.money import money_str
from paytracker.utils.validation import validate_and_normalize_amount

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class CredentialsRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(CredentialsRequest):
    confirm_password: str


class AvailableMoneyRequest(BaseModel):
    available_money: str

    @field_validator("available_money")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class UserResponse(BaseModel):
    id: str
    email: str
    is_authenticated: bool = True
    is_premium: bool
    available_money: str
    created_at: str | None = None


def _user_response(profile: Profile) -> UserResponse:
    return UserResponse(
        id=profile.id,
        email=profile.email,
        is_premium=profile.is_premium,
        available_money=money_str(profile.available_money),
        created_at=profile.created_at.isoformat() if profile.created_at else None,
    )


@router.post("/register", response_model=UserResponse)
def register(request: Request, req: RegisterRequest, services: Services = Depends(get_services)):
    session, profile = services.auth.register(req.email, req.password, req.confirm_password)
    if session.access_token:
        request.session["access_token"] = session.access_token
    return _user_response(profile)


@router.post("/login", response_model=UserResponse)
def login(request: Request, req: CredentialsRequest, services: Services = Depends(get_services)):
    session, profile = services.auth.login(req.email, req.password)
    request.session["access_token"] = session.access_token
    return _user_response(profile)


@router.post("/logout")
def logout(request: Request, services: Services = Depends(get_services)):
    token = request.session.pop("access_token", None)
    if token:
        services.auth.logout(token)
    request.session.clear()
    return {"ok": True}


@router.get("/me", response_model=UserResponse)
def me(user: Profile = Depends(get_current_user)):
    return _user_response(user)


@router.put("/available-money", response_model=UserResponse)
def update_available_money(
    req: AvailableMoneyRequest,
    user: Profile = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    profile = services.auth.update_available_money(user.id, Decimal(req.available_money))
    return _user_response(profile)
