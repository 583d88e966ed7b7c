"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from paytracker.api.v1 import auth, bills, calculator
from paytracker.application.auth import AuthValidationError
from paytracker.application.bills import BillNotFoundError
from paytracker.application.container import build_auth_provider, build_email_sender, build_store_opener
from paytracker.application.reconciliation import EmailLockRegistry, ProfileMergeError
from paytracker.application.scheduler import shutdown_scheduler, start_scheduler
from paytracker.config import Settings, get_settings
from paytracker.domain.bill import BillValidationError
from paytracker.domain.profile import ProfileValidationError
from paytracker.infrastructure.auth.base import AuthError
from paytracker.infrastructure.db.session import check_db_connection
from paytracker.infrastructure.notifications.email import EmailDeliveryError
from paytracker.infrastructure.store.base import RecordStoreError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


def _register_error_handlers(app: FastAPI) -> None:
    def handler(status_code: int):
        async def _handle(request: Request, exc: Exception):
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})
        return _handle

    app.add_exception_handler(AuthValidationError, handler(400))
    app.add_exception_handler(BillValidationError, handler(400))
    app.add_exception_handler(ProfileValidationError, handler(400))
    app.add_exception_handler(BillNotFoundError, handler(404))
    app.add_exception_handler(AuthError, handler(401))
    app.add_exception_handler(ProfileMergeError, handler(409))
    app.add_exception_handler(RecordStoreError, handler(502))
    app.add_exception_handler(EmailDeliveryError, handler(502))


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and configure the FastAPI application

    Backends (record store, auth provider, email sender) are created once
    here and kept on app.state for the lifetime of the process.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.REMINDERS_ENABLED:
            start_scheduler(app.state)
        yield
        shutdown_scheduler()

    app = FastAPI(title="PayTracker", debug=settings.DEBUG, lifespan=lifespan)

    app.state.settings = settings
    app.state.open_store = build_store_opener(settings)
    app.state.auth_provider = build_auth_provider(settings)
    app.state.email_sender = build_email_sender(settings)
    app.state.email_locks = EmailLockRegistry()

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)
    _register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(bills.router)
    app.include_router(calculator.router)

    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check (database reachable when the database backend is used)"""
        if settings.STORAGE_BACKEND == "database":
            check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "paytracker.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
