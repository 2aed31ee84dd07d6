"""Session lifecycle: register, login, logout and admission checks.

A token moves from Issued to Valid, Expired or Revoked. Valid is implicit
(signature checks out, not expired, not in the revocation store). Revoked is
terminal and wins over the other two.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import AuthConfig
from authgate.core.logging import get_logger
from authgate.models.revoked_token import MAX_TOKEN_LENGTH
from authgate.models.user import User
from authgate.services.errors import (
    DuplicateCredentialError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    TokenRevokedError,
)
from authgate.services.passwords import CredentialHasher
from authgate.services.revocation import RevocationStore
from authgate.services.storage import store_call
from authgate.services.tokens import TokenIssuer, TokenParser, extract_bearer

logger = get_logger("auth")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Service for authentication operations.

    Everything it needs is passed in: the session for this unit of work and
    the auth configuration. Collaborators can be swapped for tests.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: AuthConfig,
        *,
        timeout: float | None = None,
        hasher: CredentialHasher | None = None,
        issuer: TokenIssuer | None = None,
        parser: TokenParser | None = None,
        revocations: RevocationStore | None = None,
    ):
        self.session = session
        self.timeout = timeout
        self.token_ttl = config.token_ttl
        self.hasher = hasher or CredentialHasher(config)
        self.issuer = issuer or TokenIssuer(config)
        self.parser = parser or TokenParser(config)
        self.revocations = revocations or RevocationStore(session, timeout=timeout)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by (normalised) email."""
        result = await store_call(
            self.session.execute(select(User).where(User.email == normalize_email(email))),
            self.timeout,
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await store_call(
            self.session.execute(select(User).where(User.id == user_id)),
            self.timeout,
        )
        return result.scalar_one_or_none()

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a new user.

        Raises DuplicateCredentialError when the username or email is taken,
        including when a concurrent registration got there first.
        """
        username = (username or "").strip()
        email = normalize_email(email or "")
        if not username or not email or not password:
            raise InvalidInputError("Username, email and password are required")

        user = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
        )
        self.session.add(user)

        try:
            await store_call(self.session.commit(), self.timeout)
        except IntegrityError as e:
            # Unique indexes on username/email decide races atomically
            await store_call(self.session.rollback(), self.timeout)
            raise DuplicateCredentialError("Username or email already exists") from e

        await store_call(self.session.refresh(user), self.timeout)
        logger.info(f"Registered user {user.username} ({user.id})")
        return user

    async def login(self, email: str, password: str, now: datetime | None = None) -> str:
        """Authenticate by email and password and return a signed token.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        user = await self.get_user_by_email(email or "")

        if user is None:
            # Perform a dummy verification to prevent timing attacks
            self.hasher.verify_dummy(password or "")
            raise InvalidCredentialsError("Invalid email or password")

        if not self.hasher.verify(password or "", user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        token = self.issuer.issue(user.id, user.email, now=now)
        logger.info(f"User logged in: {user.username} ({user.id})")
        return token

    async def logout(self, authorization: str | None, now: datetime | None = None) -> None:
        """Revoke the presented bearer token until its natural expiry.

        The signature is not checked here: revoking means "stop trusting this
        token", whoever holds it. Logging out twice is not an error.

        The stored expiry never exceeds now + token TTL. No token this
        service signed can outlive that, so unsigned far-future claims cannot
        pin rows past the sweep.
        """
        token = extract_bearer(authorization)
        if token is None:
            raise InvalidTokenError("Missing or invalid authorization header")
        if len(token) > MAX_TOKEN_LENGTH:
            raise InvalidTokenError("Malformed token")

        claims = self.parser.parse_claims_unverified(token)
        latest = (now or datetime.now(UTC)) + self.token_ttl
        await self.revocations.record(token, min(claims.expires_at, latest))
        logger.info(f"Token revoked for user {claims.id}")

    async def admission_check(self, authorization: str | None) -> None:
        """Reject tokens that were revoked.

        Runs after the HTTP boundary has verified signature and expiry. With
        no Authorization value there is nothing to look up; rejecting that
        case belongs to the verification step.
        """
        token = extract_bearer(authorization)
        if token is None:
            return
        if await self.revocations.is_revoked(token):
            raise TokenRevokedError("Token has been revoked")
