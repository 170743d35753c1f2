"""File repository: storage operations over the files table, no authorization logic."""

import logging
from typing import List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.files.models import File, Folder, ParentRef
from files_manager.users.models import User
from files_manager.users.service import parse_id

log = logging.getLogger(__name__)

PAGE_SIZE = 20


class FileRepository:
    """CRUD and hierarchical queries. Writes are committed immediately."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, file: File) -> File:
        """Persist file as given and assign its id."""
        self.session.add(file)
        await self.session.commit()
        log.debug("Inserted file id=%s user_id=%s", file.id, file.user_id)
        return file

    async def find_by_id(self, file_id: Union[str, int, None]) -> Optional[File]:
        """Return the file or None (malformed ids included)."""
        parsed = parse_id(file_id)
        if parsed is None:
            return None
        return await self.session.get(File, parsed)

    async def find_children(
        self,
        owner_id: int,
        parent: ParentRef,
        page: int = 0,
        page_size: int = PAGE_SIZE,
    ) -> List[File]:
        """Files of owner_id directly under parent, in insertion order, one page at a time."""
        stmt = select(File).where(File.user_id == owner_id)
        if isinstance(parent, Folder):
            stmt = stmt.where(File.parent_id == parent.id)
        else:
            stmt = stmt.where(File.parent_id.is_(None))
        stmt = stmt.order_by(File.id).offset(max(page, 0) * page_size).limit(page_size)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_public(self, file: File, is_public: bool) -> File:
        """Flip the visibility flag (last write wins)."""
        if file.is_public != is_public:
            file.is_public = is_public
            await self.session.commit()
        return file

    async def count_users(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def count_files(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(File))
        return result.scalar_one()
