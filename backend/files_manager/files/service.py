"""File service: ownership and visibility rules on top of the repository."""

import base64
import binascii
import logging
from typing import Annotated, List, Optional, Tuple, Union

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.db.session import get_db
from files_manager.exceptions import InvalidParentError, NotAFileError, NotFoundError, ValidationError
from files_manager.files.models import (
    THUMBNAIL_WIDTHS,
    File,
    FileCreate,
    FileType,
    Folder,
    parse_parent_ref,
)
from files_manager.files.repository import FileRepository
from files_manager.files.storage import LocalByteStore, derivative_path, get_byte_store
from files_manager.jobs.celery_app import JOB_THUMBNAIL
from files_manager.jobs.queue import JobQueue, get_job_queue

log = logging.getLogger(__name__)

_FILE_TYPES = {t.value for t in FileType}


def parse_page(value: Union[str, int, None]) -> int:
    """Page index from the query string; anything unusable is page 0."""
    try:
        page = int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0
    return max(page, 0)


class FileService:
    """
    Non-owners only ever see public files, and a private file they do not own
    is reported as NotFoundError, never as forbidden, so its existence is not revealed.
    """

    def __init__(self, repository: FileRepository, store: LocalByteStore, jobs: JobQueue) -> None:
        self.repository = repository
        self.store = store
        self.jobs = jobs

    async def create(self, owner_id: int, payload: FileCreate) -> File:
        if not payload.name:
            raise ValidationError("Missing name")
        if not payload.type or payload.type not in _FILE_TYPES:
            raise ValidationError("Missing type")
        parent = parse_parent_ref(payload.parent_id)
        if parent is None:
            raise InvalidParentError("Parent not found")
        if isinstance(parent, Folder):
            parent_file = await self.repository.find_by_id(parent.id)
            if parent_file is None:
                raise InvalidParentError("Parent not found")
            if parent_file.type != FileType.FOLDER.value:
                raise InvalidParentError("Parent is not a folder")

        local_path = None
        if payload.type != FileType.FOLDER.value and payload.data is not None:
            try:
                content = base64.b64decode(payload.data, validate=True)
            except binascii.Error:
                raise ValidationError("Invalid data")
            local_path = self.store.new_path()
            self.store.write(local_path, content)

        try:
            file = await self.repository.insert(
                File(
                    user_id=owner_id,
                    name=payload.name,
                    type=payload.type,
                    is_public=payload.is_public,
                    parent_id=parent.id if isinstance(parent, Folder) else None,
                    local_path=local_path,
                )
            )
        except Exception:
            # No record points at the content, so drop it
            if local_path:
                self.store.remove(local_path)
            raise
        log.info("Created %s id=%s user_id=%s", file.type, file.id, owner_id)

        if file.type == FileType.IMAGE.value and file.local_path:
            try:
                await self.jobs.enqueue(JOB_THUMBNAIL, {"userId": str(owner_id), "fileId": str(file.id)})
            except Exception as e:
                # The file stays created; thumbnails can be regenerated later
                log.error("Could not enqueue thumbnail job for file id=%s: %s", file.id, e)
        return file

    async def get(self, requester_id: Optional[int], file_id: str) -> File:
        """Return the file if requester owns it or it is public."""
        file = await self.repository.find_by_id(file_id)
        if file is None or not (file.is_public or file.user_id == requester_id):
            raise NotFoundError()
        return file

    async def list(self, owner_id: int, parent_id: Union[str, int, None], page: Union[str, int, None]) -> List[File]:
        """The owner's files under parent_id; other users' public files are never listed."""
        parent = parse_parent_ref(parent_id)
        if parent is None:
            return []
        return await self.repository.find_children(owner_id, parent, parse_page(page))

    async def set_visibility(self, owner_id: int, file_id: str, is_public: bool) -> File:
        file = await self.repository.find_by_id(file_id)
        if file is None or file.user_id != owner_id:
            raise NotFoundError()
        file = await self.repository.set_public(file, is_public)
        log.info("File id=%s is_public=%s", file.id, file.is_public)
        return file

    async def read_content(
        self,
        requester_id: Optional[int],
        file_id: str,
        size: Union[str, int, None] = None,
    ) -> Tuple[File, bytes]:
        """Original bytes, or the derivative at width size (100, 250 or 500)."""
        width = None
        if size is not None and size != "":
            try:
                width = int(size)
            except (TypeError, ValueError):
                raise ValidationError("Invalid size")
            if width not in THUMBNAIL_WIDTHS:
                raise ValidationError("Invalid size")
        file = await self.get(requester_id, file_id)
        if file.type == FileType.FOLDER.value:
            raise NotAFileError()
        if not file.local_path:
            raise NotFoundError()
        path = file.local_path if width is None else derivative_path(file.local_path, width)
        try:
            return file, self.store.read(path)
        except FileNotFoundError:
            raise NotFoundError()


def get_file_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[LocalByteStore, Depends(get_byte_store)],
    jobs: Annotated[JobQueue, Depends(get_job_queue)],
) -> FileService:
    """FastAPI dependency."""
    return FileService(FileRepository(session), store, jobs)
