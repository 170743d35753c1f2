"""Opaque session tokens stored in the cache as auth_<token> -> user id."""

import base64
import binascii
import logging
import uuid
from typing import Annotated, Optional, Tuple

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.credentials import verify
from files_manager.cache.client import CacheClient, get_cache
from files_manager.config import get_settings

log = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "auth_"


def _key(token: str) -> str:
    return f"{TOKEN_KEY_PREFIX}{token}"


def decode_basic_auth(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Parse 'Basic base64(email:password)'. Returns (email, password) or None for
    a missing header, wrong scheme, bad base64, non UTF-8 bytes, or anything
    other than exactly two ':'-separated segments.
    """
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(parts[1], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    segments = decoded.split(":")
    if len(segments) != 2:
        return None
    return segments[0], segments[1]


class SessionManager:
    """Issues, resolves and revokes session tokens. Cache errors propagate."""

    def __init__(self, cache: CacheClient, ttl_seconds: Optional[int] = None) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else get_settings().session_ttl_seconds

    async def login(self, session: AsyncSession, authorization: Optional[str]) -> Optional[str]:
        """Verify Basic credentials and return a fresh token, or None if unauthorized."""
        credentials = decode_basic_auth(authorization)
        if credentials is None:
            log.debug("login: malformed Authorization header")
            return None
        email, password = credentials
        user = await verify(session, email, password)
        if user is None:
            log.warning("Login failed for email=%s", email)
            return None
        token = str(uuid.uuid4())
        await self.cache.set(_key(token), str(user.id), self.ttl_seconds)
        log.info("Login successful for email=%s", user.email)
        return token

    async def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the user id for token, or None. Does not extend the TTL."""
        if not token:
            return None
        return await self.cache.get(_key(token))

    async def logout(self, token: Optional[str]) -> bool:
        """Revoke token. False if it was not a live session."""
        user_id = await self.resolve(token)
        if user_id is None:
            return False
        await self.cache.delete(_key(token))
        log.info("Logout for user_id=%s", user_id)
        return True


def get_session_manager(cache: Annotated[CacheClient, Depends(get_cache)]) -> SessionManager:
    """FastAPI dependency."""
    return SessionManager(cache)
