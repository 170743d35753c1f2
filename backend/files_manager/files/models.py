"""File SQLAlchemy model, parent references and Pydantic schemas."""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from files_manager.db.session import Base


class FileType(str, enum.Enum):
    FOLDER = "folder"
    FILE = "file"
    IMAGE = "image"


# Widths of the image derivatives produced by the thumbnail worker, in generation order
THUMBNAIL_WIDTHS = (500, 250, 100)


class File(Base):
    """File entity. parent_id NULL means the implicit root folder."""

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(1024), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("files.id"), nullable=True, index=True)
    local_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def parent(self) -> "ParentRef":
        return ROOT if self.parent_id is None else Folder(self.parent_id)


@dataclass(frozen=True)
class Root:
    """The implicit top-level folder. No File row represents it."""


@dataclass(frozen=True)
class Folder:
    id: int


ParentRef = Union[Root, Folder]
ROOT = Root()


def parse_parent_ref(value: Union[str, int, None]) -> Optional[ParentRef]:
    """0, "0", empty or None is ROOT; a positive integer id is a Folder; anything else is None."""
    if value is None or value == "" or value == 0 or value == "0":
        return ROOT
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Folder(value) if value > 0 else None
    if isinstance(value, str) and value.isdigit() and int(value) > 0:
        return Folder(int(value))
    return None


# Pydantic schemas for API
class FileCreate(BaseModel):
    """Upload body. data is base64 content for file/image types."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    type: Optional[str] = None
    parent_id: Union[int, str, None] = 0
    is_public: bool = False
    data: Optional[str] = None


class FileResponse(BaseModel):
    """File as returned by API; parentId is 0 for the root."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    name: str
    type: str
    is_public: bool
    parent_id: Union[int, str]

    @classmethod
    def from_file(cls, file: File) -> "FileResponse":
        return cls(
            id=str(file.id),
            user_id=str(file.user_id),
            name=file.name,
            type=file.type,
            is_public=file.is_public,
            parent_id=0 if file.parent_id is None else str(file.parent_id),
        )
