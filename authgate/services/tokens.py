"""Bearer token issuance and parsing (JWT, HMAC-signed).

Claims are a fixed shape: ``id`` (user UUID), ``email``, ``exp`` (Unix
seconds) and ``jti`` (random, makes every issued token distinct). Anything
else in a presented token is rejected.
"""

import secrets
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import jwt
from jwt.exceptions import PyJWTError
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic import ValidationError as SchemaValidationError

from authgate.core.config import AuthConfig
from authgate.services.errors import (
    ClaimMissingError,
    InvalidSignatureError,
    InvalidTokenError,
    SigningError,
    TokenExpiredError,
    TokenParseError,
)

BEARER_SCHEME = "bearer"

# 9999-12-31T23:59:59Z, the last second datetime can represent
MAX_EXP = 253402300799


class TokenClaims(BaseModel):
    """Claims carried by an issued token."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: UUID
    email: StrictStr
    exp: Annotated[StrictInt, Field(ge=0, le=MAX_EXP)]
    jti: StrictStr

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=UTC)


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` value, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None
    token = token.strip()
    return token or None


def _validate_claims(payload: dict) -> TokenClaims:
    try:
        return TokenClaims.model_validate(payload)
    except SchemaValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise ClaimMissingError(f"Invalid token claims: {fields or 'payload'}") from e


class TokenIssuer:
    """Signs tokens for authenticated users."""

    def __init__(self, config: AuthConfig):
        self._key = config.signing_key
        self._algorithm = config.algorithm
        self._ttl = config.token_ttl

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._ttl.total_seconds())

    def issue(self, user_id: UUID, email: str, now: datetime | None = None) -> str:
        """Create a signed token for the user, valid for the configured TTL."""
        if not self._key:
            raise SigningError("Signing key is not configured")

        issued_at = now or datetime.now(UTC)
        payload = {
            "id": str(user_id),
            "email": email,
            "exp": int((issued_at + self._ttl).timestamp()),
            "jti": secrets.token_hex(16),
        }
        try:
            token = jwt.encode(payload, self._key, algorithm=self._algorithm)
        except (PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            raise SigningError("Failed to sign token") from e
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)


class TokenParser:
    """Reads claims out of presented tokens."""

    def __init__(self, config: AuthConfig):
        self._key = config.signing_key
        self._algorithm = config.algorithm

    def parse_claims_unverified(self, token: str) -> TokenClaims:
        """Decode the claims without checking the signature or expiry.

        Only used to learn a token's expiry when revoking it.
        """
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except PyJWTError as e:
            raise TokenParseError("Malformed token") from e
        return _validate_claims(payload)

    def verify(self, token: str, now: datetime | None = None) -> TokenClaims:
        """Check signature and expiry and return the claims."""
        if not self._key:
            raise SigningError("Signing key is not configured")

        try:
            # Expiry is compared below against the caller's clock
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "require": ["exp"]},
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError("Invalid token signature") from e
        except jwt.MissingRequiredClaimError as e:
            raise ClaimMissingError("Token is missing the exp claim") from e
        except jwt.DecodeError as e:
            raise TokenParseError("Malformed token") from e
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        claims = _validate_claims(payload)
        current = now or datetime.now(UTC)
        if claims.exp <= current.timestamp():
            raise TokenExpiredError("Token has expired")
        return claims
