"""Session routes: connect (Basic auth -> token) and disconnect."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.sessions import SessionManager, get_session_manager
from files_manager.config import get_settings
from files_manager.db.session import get_db
from files_manager.limiter import limiter
from files_manager.users.models import TokenResponse

router = APIRouter(tags=["auth"])
log = logging.getLogger(__name__)


@router.get("/connect", response_model=TokenResponse)
@limiter.limit(get_settings().connect_rate_limit)
async def connect(
    request: Request,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    session: Annotated[AsyncSession, Depends(get_db)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> TokenResponse:
    """Exchange Basic credentials for a session token valid 24 hours."""
    token = await sessions.login(session, authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return TokenResponse(token=token)


@router.get("/disconnect", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect(
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    x_token: Annotated[Optional[str], Header()] = None,
) -> Response:
    """Revoke the session token. A second call with the same token is 401."""
    if not await sessions.logout(x_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
