"""Welcome job: greet a newly signed-up user."""

import logging
from typing import Any, Dict

from files_manager.config import get_settings
from files_manager.db.session import get_session
from files_manager.jobs.dlq import PermanentJobError
from files_manager.users.service import get_user_by_id, send_welcome_email

log = logging.getLogger(__name__)


async def process_welcome_job(payload: Dict[str, Any]) -> None:
    """Handler for welcome jobs: payload {"userId"}. Emails when SMTP is configured, else logs."""
    user_id = payload.get("userId")
    if not user_id:
        raise PermanentJobError("Missing userId")
    async with get_session() as session:
        user = await get_user_by_id(session, user_id)
    if user is None:
        raise PermanentJobError("User not found")
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_from:
        log.info("Welcome %s!", user.email)
        return
    await send_welcome_email(user.email)
    log.info("Welcome email sent to %s", user.email)
