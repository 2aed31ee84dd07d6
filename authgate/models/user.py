"""User model for credential authentication."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from authgate.models.base import BaseModel


class User(BaseModel):
    """Registered user.

    Username and email are unique across all users; the unique indexes are
    what resolves concurrent registrations. ``password_hash`` only ever
    holds an Argon2 hash.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
