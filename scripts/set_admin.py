"""
Bootstrap an administrator account.

Usage:
  python scripts/set_admin.py <uid>            # Firestore profile + custom claim
  python scripts/set_admin.py <uid> --no-claim # profile only

Behavior:
  - Marks users/<uid> as an approved admin (user_type=admin, role=admin, status=approved).
  - Sets the `admin: true` custom claim on the Firebase Auth user so the
    frontend can show admin screens before the profile loads.

NOTE: Requires FIREBASE_CREDENTIALS_PATH (or Application Default Credentials)
in `.env`. With USE_MOCK_DB=true only the in-memory profile is written,
which is useful for checking the script but not persisted.
"""

import argparse
import sys

from firebase_admin import auth

from app.config.firebase import initialize_firebase_app
from app.core.logging import setup_logging
from app.core.settings import settings
from app.services.user_service import get_user_service
import logging

logger = logging.getLogger(__name__)


def set_admin_claim(uid: str) -> None:
    """Merge {'admin': True} into the user's existing custom claims."""
    user = auth.get_user(uid)
    claims = dict(user.custom_claims or {})
    claims["admin"] = True
    auth.set_custom_user_claims(uid, claims)
    logger.info(f"Custom claim admin=true set for {uid} ({user.email or 'no email'})")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Grant admin rights to a Firebase user")
    parser.add_argument("uid", help="Firebase Auth user id")
    parser.add_argument("--no-claim", action="store_true", help="Only update the Firestore profile")
    args = parser.parse_args(argv)

    setup_logging()

    if not args.no_claim and not settings.USE_MOCK_DB:
        initialize_firebase_app()
        try:
            set_admin_claim(args.uid)
        except auth.UserNotFoundError:
            logger.error(f"No Firebase Auth user with uid {args.uid}")
            return 1

    profile = get_user_service().grant_admin(args.uid)
    logger.info(f"✅ {profile.uid} is now an approved admin")
    return 0


if __name__ == "__main__":
    sys.exit(main())
