"""
Admin endpoints - account approval.

Operator and admin accounts are created pending; an approved admin decides.
Approval keeps the role the account asked for.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.errors import ReportEngineError
from app.models.user import UserProfile
from app.routes.dependencies import http_error, require_admin
from app.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserProfile])
def list_users(
    user_type: Optional[str] = Query(None, description="citizen, operator or admin"),
    status: Optional[str] = Query(None, description="pending, approved or rejected"),
    admin: UserProfile = Depends(require_admin),
    user_service: UserService = Depends(get_user_service)
):
    try:
        return user_service.list_profiles(user_type=user_type, status=status)
    except ReportEngineError as e:
        raise http_error(e)


@router.post("/users/{uid}/approve", response_model=UserProfile)
def approve_user(
    uid: str,
    admin: UserProfile = Depends(require_admin),
    user_service: UserService = Depends(get_user_service)
):
    try:
        return user_service.approve(uid, admin_id=admin.uid)
    except ReportEngineError as e:
        raise http_error(e)


@router.post("/users/{uid}/reject", response_model=UserProfile)
def reject_user(
    uid: str,
    admin: UserProfile = Depends(require_admin),
    user_service: UserService = Depends(get_user_service)
):
    try:
        return user_service.reject(uid, admin_id=admin.uid)
    except ReportEngineError as e:
        raise http_error(e)
