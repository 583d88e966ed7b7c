"""
FastAPI dependencies (services, authentication)
"""
from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request, status

from paytracker.application.container import Services, build_services
from paytracker.domain.profile import Profile


def get_services(request: Request) -> Iterator[Services]:
    """
    Services bound to a store opened for this request

    Usage:
        @router.get("/bills")
        def list_bills(services: Services = Depends(get_services)):
            ...
    """
    state = request.app.state
    store, close = state.open_store()
    try:
        yield build_services(store, state.auth_provider, state.email_sender, state.email_locks,
                             state.settings.TIMEZONE)
    finally:
        close()


def get_current_user(request: Request, services: Services = Depends(get_services)) -> Profile:
    """
    Profile of the logged-in user

    Raises:
        HTTPException(401): no session or the provider no longer knows it
    """
    token = request.session.get("access_token")
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = services.auth.get_current_user(token)
    if user is None:
        request.session.clear()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    return user
