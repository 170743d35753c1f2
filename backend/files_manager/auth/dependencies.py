"""FastAPI dependencies for auth."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.sessions import SessionManager, get_session_manager
from files_manager.db.session import get_db
from files_manager.users.models import User
from files_manager.users.service import get_user_by_id

log = logging.getLogger(__name__)


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_optional_user(
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    session: Annotated[AsyncSession, Depends(get_db)],
    x_token: Annotated[Optional[str], Header()] = None,
) -> Optional[User]:
    """Resolve X-Token to a user, or None when missing, expired, or revoked."""
    user_id = await sessions.resolve(x_token)
    if user_id is None:
        return None
    user = await get_user_by_id(session, user_id)
    if user is None:
        log.warning("Token valid but user not found: user_id=%s", user_id)
    return user


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> User:
    """Require a live session; raise 401 otherwise."""
    if user is None:
        log.debug("Request without a valid X-Token")
        raise _unauthorized()
    return user
