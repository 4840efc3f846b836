"""
User profile endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.errors import ReportEngineError
from app.models.user import ProfileRequest, UserProfile
from app.routes.dependencies import get_caller_email, get_caller_id, http_error
from app.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/me", response_model=UserProfile)
def ensure_my_profile(
    request: ProfileRequest,
    caller_id: str = Depends(get_caller_id),
    caller_email: Optional[str] = Depends(get_caller_email),
    user_service: UserService = Depends(get_user_service)
):
    """
    Create the caller's profile on first sign-in (idempotent).

    Citizens are approved immediately; operator and admin accounts wait
    for an admin. Calling again never changes type or approval.
    """
    try:
        return user_service.ensure_user_profile(
            caller_id,
            email=request.email or caller_email,
            user_type=request.user_type,
        )
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/me", response_model=UserProfile)
def get_my_profile(
    caller_id: str = Depends(get_caller_id),
    user_service: UserService = Depends(get_user_service)
):
    try:
        profile = user_service.get_profile(caller_id)
    except ReportEngineError as e:
        raise http_error(e)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
