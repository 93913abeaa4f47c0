"""
Current-user API routes.

Provides endpoints for:
- GET /me - the authenticated user
- GET /settings, PUT /settings - user-editable profile fields
"""

import logging
from typing import Any

from fastapi import APIRouter
from sqlmodel import SQLModel

from vetdesk.api.deps import CurrentUser, SessionDep
from vetdesk.core.errors import bad_request, conflict
from vetdesk.crud.user import DuplicatePhoneError, update_user_settings
from vetdesk.models import UserPublic, UserResponse, UserSettingsPublic, UserSettingsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


class UserSettingsUpdate(SQLModel):
    """Properties to receive on settings update."""
    name: str | None = None
    phone: str | None = None


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: CurrentUser) -> Any:
    """
    Get the current user.

    Returns 401 without a valid session cookie.
    """
    return UserResponse(user=UserPublic.model_validate(current_user, from_attributes=True))


@router.get("/settings", response_model=UserSettingsResponse)
async def read_settings(current_user: CurrentUser) -> Any:
    return UserSettingsResponse(
        user=UserSettingsPublic.model_validate(current_user, from_attributes=True)
    )


@router.put("/settings", response_model=UserSettingsResponse)
async def update_settings(
    body: UserSettingsUpdate,
    current_user: CurrentUser,
    session: SessionDep,
) -> Any:
    """
    Update the current user's name and phone.

    The phone is required and must be unique across users.
    """
    phone = (body.phone or "").strip()
    if not phone:
        raise bad_request("phone_required", "Phone is required")

    try:
        user = update_user_settings(
            session=session,
            user=current_user,
            name=body.name,
            phone=phone,
        )
    except DuplicatePhoneError:
        raise conflict("duplicate_phone", "Phone is already in use")

    logger.info("Updated settings for user %s", user.id)
    return UserSettingsResponse(
        user=UserSettingsPublic.model_validate(user, from_attributes=True)
    )
