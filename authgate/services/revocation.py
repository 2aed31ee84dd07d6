"""Revoked-token store backed by the ``revoked_tokens`` table.

Revocation is a deny-list: a token that is not listed is not revoked.
Rows only need to live until the token would have expired anyway; purging
them is housekeeping and never changes an admission decision.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.logging import get_logger
from authgate.models.revoked_token import RevokedToken
from authgate.services.storage import store_call

logger = get_logger("revocation")


class RevocationStore:
    """Records revoked tokens and answers membership queries."""

    def __init__(self, session: AsyncSession, timeout: float | None = None):
        self.session = session
        self.timeout = timeout

    async def record(self, token: str, expires_at: datetime) -> None:
        """Persist a revoked token. Revoking an already revoked token is a no-op.

        Commits before returning so later admission checks see the entry.
        """
        self.session.add(RevokedToken(token=token, expires_at=expires_at))
        try:
            await store_call(self.session.commit(), self.timeout)
        except IntegrityError:
            # Unique constraint on token: a previous or concurrent logout won
            await store_call(self.session.rollback(), self.timeout)
            logger.debug("Token was already revoked")

    async def is_revoked(self, token: str) -> bool:
        """Check if a token has been revoked."""
        result = await store_call(
            self.session.execute(select(RevokedToken.id).where(RevokedToken.token == token)),
            self.timeout,
        )
        return result.scalar_one_or_none() is not None

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove entries whose token has expired. Returns count removed."""
        cutoff = now or datetime.now(UTC)
        result: CursorResult[Any] = await store_call(  # type: ignore[assignment]
            self.session.execute(delete(RevokedToken).where(RevokedToken.expires_at < cutoff)),
            self.timeout,
        )
        await store_call(self.session.commit(), self.timeout)
        return result.rowcount
