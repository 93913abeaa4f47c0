"""
FastAPI dependencies: database session, identity provider config and the
current authenticated session/user.
"""

from typing import Annotated, Generator

from fastapi import Depends, Request, status
from sqlmodel import Session

from vetdesk.api.cookies import SESSION_COOKIE_NAME
from vetdesk.core.errors import AppError, unauthorized
from vetdesk.core.logging import bind_user_id
from vetdesk.crud.session import get_user_session
from vetdesk.models import User, UserSession
from vetdesk.services.oidc_client import OIDCProviderConfig


def get_db(request: Request) -> Generator[Session, None, None]:
    with request.app.state.database.session() as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def get_oidc_config(request: Request) -> OIDCProviderConfig:
    """Provider config discovered at startup."""
    config = getattr(request.app.state, "oidc_config", None)
    if config is None:
        raise AppError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "auth_unavailable",
            "Identity provider is not configured",
        )
    return config


OIDCConfigDep = Annotated[OIDCProviderConfig, Depends(get_oidc_config)]


async def get_current_session(request: Request, session: SessionDep) -> UserSession:
    """
    Resolve the session cookie to a valid session.

    Raises:
        AppError: 401 unauthorized if the cookie is missing, unknown or expired
    """
    user_session = get_user_session(
        session=session,
        session_id=request.cookies.get(SESSION_COOKIE_NAME),
    )
    if user_session is None:
        raise unauthorized()

    request.state.session_id = user_session.id
    request.state.user_id = str(user_session.user_id)
    bind_user_id(str(user_session.user_id))
    return user_session


CurrentSession = Annotated[UserSession, Depends(get_current_session)]


async def get_current_user(current_session: CurrentSession) -> User:
    return current_session.user


CurrentUser = Annotated[User, Depends(get_current_user)]
