"""Revoked bearer tokens - survives process restarts."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from authgate.models.base import BaseModel

# Long enough for a signed token carrying a 255-char email
MAX_TOKEN_LENGTH = 1024


class RevokedToken(BaseModel):
    """A token that must no longer be accepted, kept until it would have expired.

    Entries are created on logout and removed by the expiry sweep.
    """

    __tablename__ = "revoked_tokens"

    token: Mapped[str] = mapped_column(String(MAX_TOKEN_LENGTH), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
