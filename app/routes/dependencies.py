"""
Shared request dependencies: caller identity, role gates and error mapping.

Identity arrives in the X-User-ID header (set by the auth proxy in front of
the API). Role checks always read the stored profile, never the request.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.core.errors import ReportEngineError
from app.models.user import UserProfile, UserType
from app.services.user_service import UserService, get_user_service
import logging

logger = logging.getLogger(__name__)


def http_error(exc: ReportEngineError) -> HTTPException:
    """Map a domain error onto the HTTP status it carries."""
    if exc.status_code >= 500:
        logger.error(f"❌ {type(exc).__name__}: {exc.message}")
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def get_caller_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header"
        )
    return x_user_id.strip()


def get_caller_email(x_user_email: Optional[str] = Header(None, alias="X-User-Email")) -> Optional[str]:
    return x_user_email


def get_optional_caller_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> Optional[str]:
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def require_operator(
    caller_id: str = Depends(get_caller_id),
    user_service: UserService = Depends(get_user_service)
) -> UserProfile:
    """Approved operator or admin."""
    try:
        return user_service.require_role(caller_id, UserType.OPERATOR, UserType.ADMIN)
    except ReportEngineError as e:
        logger.warning(f"Operator access denied for {caller_id}: {e.message}")
        raise http_error(e)


def require_admin(
    caller_id: str = Depends(get_caller_id),
    user_service: UserService = Depends(get_user_service)
) -> UserProfile:
    try:
        return user_service.require_role(caller_id, UserType.ADMIN)
    except ReportEngineError as e:
        logger.warning(f"Admin access denied for {caller_id}: {e.message}")
        raise http_error(e)
