"""User SQLAlchemy model and Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from files_manager.db.session import Base


class User(Base):
    """User table: email is the unique login identifier."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # SHA-1 hex digest; see auth.credentials.hash_password
    password_hash: Mapped[str] = mapped_column(String(40), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# Pydantic schemas for API
class UserCreate(BaseModel):
    """Signup body. Fields are optional so missing ones get a specific 400 message."""

    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """User as returned by API (no password)."""

    id: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=str(user.id), email=user.email)


class TokenResponse(BaseModel):
    """Session token returned by /connect."""

    token: str
