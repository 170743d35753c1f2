"""Password hashing and credential verification."""

import hashlib
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.users.models import User

log = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """SHA-1 hex digest of the UTF-8 password. Weak, but matches existing stored hashes."""
    return hashlib.sha1(password.encode("utf-8")).hexdigest()


async def verify(session: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user if email exists (exact match) and password hashes to the stored value, else None."""
    # users.service imports hash_password from here
    from files_manager.users import service as users_service

    user = await users_service.get_user_by_email(session, email)
    if user is None:
        log.debug("verify: no user for email=%s", email)
        return None
    if user.password_hash != hash_password(password):
        log.debug("verify: password mismatch for email=%s", email)
        return None
    return user
