"""User routes: signup and current user."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.dependencies import get_current_user
from files_manager.db.session import get_db
from files_manager.jobs.celery_app import JOB_WELCOME
from files_manager.jobs.queue import JobQueue, get_job_queue
from files_manager.users.models import User, UserCreate, UserResponse
from files_manager.users.service import create_user as do_create_user

router = APIRouter(tags=["users"])
log = logging.getLogger(__name__)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    session: Annotated[AsyncSession, Depends(get_db)],
    jobs: Annotated[JobQueue, Depends(get_job_queue)],
) -> UserResponse:
    """Sign up with email and password. Queues a welcome notification."""
    user = await do_create_user(session, payload)
    try:
        await jobs.enqueue(JOB_WELCOME, {"userId": str(user.id)})
    except Exception as e:
        log.error("Could not enqueue welcome job for user id=%s: %s", user.id, e)
    return UserResponse.from_user(user)


@router.get("/users/me", response_model=UserResponse)
async def me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """Return current authenticated user."""
    return UserResponse.from_user(current_user)
