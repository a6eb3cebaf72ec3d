"""
Credential checks and registration.

Passwords are stored and compared as plaintext, as in the data this service
was built around. That is a known security defect: hashing needs a migration
of existing accounts and is tracked separately (see DESIGN.md).
"""

import logging
import secrets

from tourguide.core.errors import AuthenticationError, ValidationError
from tourguide.db.storage import Storage
from tourguide.models.guide import GuideProfileCreate
from tourguide.models.user import RegisterRequest, User, UserCreate, UserOut

logger = logging.getLogger(__name__)


def sanitize_user(user: User) -> UserOut:
    """Project a stored user onto the public schema (no password)."""
    return UserOut.model_validate(user.model_dump(exclude={"password"}))


def _password_matches(stored: str | None, supplied: str) -> bool:
    if stored is None:
        return False
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


async def authenticate(
    storage: Storage,
    username: str | None,
    email: str | None,
    password: str | None,
) -> UserOut:
    if (not username and not email) or not password:
        raise ValidationError("Email/username and password are required")

    user = None
    if username:
        user = await storage.get_user_by_username(username)
    if user is None and email:
        user = await storage.get_user_by_email(email)

    if user is None or not _password_matches(user.password, password):
        logger.info(f"[auth] Rejected login for {username or email}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"[auth] Login succeeded for {user.username} ({user.user_type})")
    return sanitize_user(user)


async def register(storage: Storage, body: RegisterRequest) -> UserOut:
    if await storage.get_user_by_username(body.username):
        raise ValidationError("Username already exists")
    if await storage.get_user_by_email(body.email):
        raise ValidationError("Email already registered")

    user = await storage.create_user(UserCreate(**body.model_dump(exclude={"guide_profile"})))

    if body.user_type == "guide" and body.guide_profile is not None:
        # Separate write; a failure here leaves the user without a profile
        await storage.create_guide_profile(
            GuideProfileCreate(user_id=user.id, **body.guide_profile.model_dump())
        )

    logger.info(f"[auth] Registered {user.user_type} {user.username} ({user.id})")
    return sanitize_user(user)
