"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import String, DateTime, Date, Boolean, Numeric, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from paytracker.infrastructure.db.session import Base


class UserModel(Base):
    """
    User profile.

    `id` is issued by the external auth provider; `email` is the
    secondary business key used to find orphaned profiles.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false", default=False)
    available_money: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, server_default="0", default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class BillModel(Base):
    """
    Upcoming bill owned by exactly one user
    """
    __tablename__ = "bills"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)

    # none | 1_day | 3_days | 1_week | 2_weeks
    notification_frequency: Mapped[str] = mapped_column(String(16), nullable=False, server_default="none")
    reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
