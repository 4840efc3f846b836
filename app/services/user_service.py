"""
User Service - profiles, approval and role checks.

Citizens are approved on creation. Operators and admins start pending and
must be approved by an admin before they can act on reports. Profiles are
created server-side so a client cannot grant itself a role.
"""

import time
from typing import Callable, List, Optional

from app.config.firebase import get_user_store
from app.core.errors import PermissionDenied, StorageUnavailable
from app.core.settings import settings
from app.models.user import ApprovalStatus, UserProfile, UserType
from app.services.user_store import UserStore
import logging

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user profile management.
    """

    def __init__(
        self,
        store: UserStore,
        max_retries: int = 3,
        retry_delay_ms: int = 500,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.store = store
        self.max_retries = max(1, max_retries)
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep

    def ensure_user_profile(
        self,
        uid: str,
        email: Optional[str] = None,
        user_type: UserType = UserType.CITIZEN
    ) -> UserProfile:
        """
        Ensure users/{uid} exists.

        New profiles get their type, role and approval status; existing
        profiles only get their email refreshed (approval is never reset).
        Transient store failures are retried with linear backoff
        (delay, 2 * delay, ...).

        Raises:
            StorageUnavailable: every attempt failed
        """
        user_type = UserType(user_type)
        is_citizen = user_type == UserType.CITIZEN
        create_only = {
            "user_type": user_type.value,
            "role": UserType.CITIZEN.value if is_citizen else None,
            "status": (ApprovalStatus.APPROVED if is_citizen else ApprovalStatus.PENDING).value,
        }

        for attempt in range(1, self.max_retries + 1):
            try:
                self.store.upsert_profile(uid, {"uid": uid, "email": email}, create_only=create_only)
                if attempt > 1:
                    logger.info(f"ensure_user_profile: succeeded on attempt {attempt} for {uid}")
                break
            except StorageUnavailable as e:
                logger.warning(f"ensure_user_profile attempt {attempt} failed for {uid}: {e}")
                if attempt == self.max_retries:
                    logger.error(f"Failed to ensure user profile for {uid}")
                    raise
                self._sleep(self.retry_delay_ms * attempt / 1000.0)

        return self.store.get_profile(uid)

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        return self.store.get_profile(uid)

    def require_role(self, uid: Optional[str], *user_types: UserType) -> UserProfile:
        """
        Profile of `uid` if it is approved with one of `user_types`.

        Raises:
            PermissionDenied: no identity, no profile, not approved, or wrong type
        """
        if not uid:
            raise PermissionDenied("Sign in required")
        profile = self.store.get_profile(uid)
        if profile is None:
            raise PermissionDenied("No user profile found for caller")
        if not profile.is_approved:
            raise PermissionDenied(f"Account is {profile.status}; awaiting administrator approval")
        if not profile.has_role(*user_types):
            allowed = ", ".join(t.value for t in user_types)
            raise PermissionDenied(f"This action requires one of: {allowed}")
        return profile

    def list_profiles(self, user_type: Optional[str] = None, status: Optional[str] = None) -> List[UserProfile]:
        return self.store.query_profiles(user_type=user_type, status=status)

    def _existing(self, uid: str) -> UserProfile:
        profile = self.store.get_profile(uid)
        if profile is None:
            raise PermissionDenied(f"User {uid} has no profile")
        return profile

    def approve(self, uid: str, admin_id: str) -> UserProfile:
        """Approve a pending account, keeping its requested role."""
        profile = self._existing(uid)
        role = profile.role or profile.user_type or UserType.OPERATOR.value
        self.store.update_profile(uid, {"status": ApprovalStatus.APPROVED.value, "role": role})
        logger.info(f"✅ Admin {admin_id} approved {profile.user_type} account {uid} (role={role})")
        return self.store.get_profile(uid)

    def reject(self, uid: str, admin_id: str) -> UserProfile:
        profile = self._existing(uid)
        self.store.update_profile(uid, {"status": ApprovalStatus.REJECTED.value})
        logger.info(f"Admin {admin_id} rejected {profile.user_type} account {uid}")
        return self.store.get_profile(uid)

    def grant_admin(self, uid: str) -> UserProfile:
        """Bootstrap an approved admin profile (used by scripts/set_admin.py)."""
        self.store.upsert_profile(uid, {
            "uid": uid,
            "user_type": UserType.ADMIN.value,
            "role": UserType.ADMIN.value,
            "status": ApprovalStatus.APPROVED.value,
        })
        logger.info(f"Granted admin to {uid}")
        return self.store.get_profile(uid)


# Global service instance
_user_service = None


def get_user_service() -> UserService:
    """Get or create UserService singleton."""
    global _user_service
    if _user_service is None:
        _user_service = UserService(
            get_user_store(),
            max_retries=settings.PROFILE_MAX_RETRIES,
            retry_delay_ms=settings.PROFILE_RETRY_DELAY_MS,
        )
    return _user_service
