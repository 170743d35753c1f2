"""User service: signup, lookups, welcome email."""

import logging
from email.message import EmailMessage
from typing import Optional, Union

import aiosmtplib
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.credentials import hash_password
from files_manager.config import get_settings
from files_manager.exceptions import ValidationError
from files_manager.users.models import User, UserCreate

log = logging.getLogger(__name__)


def parse_id(value: Union[str, int, None]) -> Optional[int]:
    """Integer id from an opaque identifier, or None if it is not id-shaped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.isdigit():
        parsed = int(value)
        return parsed if parsed > 0 else None
    return None


async def send_welcome_email(to_email: str) -> None:
    """Send the welcome message. Raises on SMTP failure."""
    settings = get_settings()
    msg = EmailMessage()
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    msg["Subject"] = "Welcome to Files Manager"
    msg.set_content(f"""Hello {to_email},

Your Files Manager account is ready. Log in with your email and password to start uploading.

Best regards,
Files Manager
""")
    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user or None,
        password=settings.smtp_password or None,
        use_tls=settings.smtp_port == 465,
        start_tls=settings.smtp_port == 587,
    )


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Return user by email or None."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: Union[str, int, None]) -> Optional[User]:
    """Return user by id or None (also None for malformed ids)."""
    parsed = parse_id(user_id)
    if parsed is None:
        return None
    return await session.get(User, parsed)


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    """
    Validate and store a new user. Raises ValidationError with the message the
    API returns: "Missing email", "Missing password" or "Already exist".
    Commits so the welcome worker can see the row.
    """
    if not payload.email:
        raise ValidationError("Missing email")
    if not payload.password:
        raise ValidationError("Missing password")
    existing = await get_user_by_email(session, payload.email)
    if existing:
        raise ValidationError("Already exist")
    user = User(email=payload.email, password_hash=hash_password(payload.password))
    session.add(user)
    await session.commit()
    log.info("Created user id=%s email=%s", user.id, user.email)
    return user
