"""
Service composition.

Backends are picked once from settings; every service receives its
collaborators explicitly.
"""
from dataclasses import dataclass
from typing import Callable

from paytracker.application.auth import AuthService
from paytracker.application.bills import BillService
from paytracker.application.calculation import CalculationService
from paytracker.application.reconciliation import EmailLockRegistry, ProfileResolver
from paytracker.application.reminders import ReminderService
from paytracker.config import Settings
from paytracker.infrastructure.auth.base import AuthProvider
from paytracker.infrastructure.auth.http import HttpAuthProvider
from paytracker.infrastructure.auth.memory import InMemoryAuthProvider
from paytracker.infrastructure.notifications.email import EmailSender, LoggingEmailSender, SmtpEmailSender
from paytracker.infrastructure.db.session import open_session
from paytracker.infrastructure.store.base import RecordStore
from paytracker.infrastructure.store.memory import InMemoryRecordStore
from paytracker.infrastructure.store.sql import SqlAlchemyRecordStore


@dataclass
class Services:
    bills: BillService
    auth: AuthService
    calculation: CalculationService
    reminders: ReminderService
    resolver: ProfileResolver


def build_auth_provider(settings: Settings) -> AuthProvider:
    if settings.AUTH_BACKEND == "http":
        return HttpAuthProvider(
            base_url=settings.AUTH_PROVIDER_URL,
            api_key=settings.AUTH_PROVIDER_KEY,
            service_key=settings.AUTH_PROVIDER_SERVICE_KEY,
            timeout=settings.AUTH_PROVIDER_TIMEOUT,
        )
    if settings.AUTH_BACKEND == "memory":
        return InMemoryAuthProvider(seed_demo_users=settings.SEED_DEMO_USERS)
    raise ValueError(f"Unknown AUTH_BACKEND: {settings.AUTH_BACKEND}")


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.EMAIL_SMTP_HOST:
        return SmtpEmailSender(
            host=settings.EMAIL_SMTP_HOST,
            port=settings.EMAIL_SMTP_PORT,
            user=settings.EMAIL_SMTP_USER,
            password=settings.EMAIL_SMTP_PASSWORD,
            sender=settings.EMAIL_FROM,
        )
    return LoggingEmailSender()


def build_services(
    store: RecordStore,
    auth_provider: AuthProvider,
    email_sender: EmailSender,
    locks: EmailLockRegistry | None = None,
    timezone: str = "UTC",
) -> Services:
    resolver = ProfileResolver(store, locks)
    bills = BillService(store)
    return Services(
        bills=bills,
        auth=AuthService(auth_provider, resolver, store, email_sender),
        calculation=CalculationService(timezone),
        reminders=ReminderService(bills, store, email_sender),
        resolver=resolver,
    )


def build_store_opener(settings: Settings) -> Callable[[], tuple[RecordStore, Callable[[], None]]]:
    """
    Returns a function that opens a store for one unit of work and the
    callback that releases it. The in-memory store is shared by all callers.
    """
    if settings.STORAGE_BACKEND == "memory":
        shared = InMemoryRecordStore()
        return lambda: (shared, lambda: None)

    if settings.STORAGE_BACKEND == "database":
        def open_store():
            db = open_session()
            return SqlAlchemyRecordStore(db), db.close
        return open_store

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
