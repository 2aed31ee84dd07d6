"""Error types raised by the credential and session services.

The HTTP layer maps these to status codes; messages are kept generic so they
can be shown to clients as-is.
"""


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidInputError(AuthError):
    """Required input is missing or malformed."""

    pass


class DuplicateCredentialError(AuthError):
    """Username or email is already registered."""

    pass


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password. The two cases are not distinguished."""

    pass


class TokenError(AuthError):
    """Bearer token error."""

    pass


class InvalidTokenError(TokenError):
    """Token is missing, malformed, or otherwise not acceptable."""

    pass


class TokenParseError(InvalidTokenError):
    """Token is not a well-formed signed token."""

    pass


class ClaimMissingError(InvalidTokenError):
    """A required claim is absent, has the wrong type, or an unknown claim is present."""

    pass


class InvalidSignatureError(InvalidTokenError):
    """Token signature does not match."""

    pass


class TokenExpiredError(TokenError):
    """Token has expired."""

    pass


class TokenRevokedError(TokenError):
    """Token was revoked by logout."""

    pass


class HashingError(AuthError):
    """Password hashing failed."""

    pass


class MalformedHashError(HashingError):
    """A stored password hash could not be parsed."""

    pass


class SigningError(AuthError):
    """Token could not be signed or verified with the configured key."""

    pass


class StorageError(AuthError):
    """The relational store failed or timed out."""

    pass
