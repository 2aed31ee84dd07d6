# authgate Services
from authgate.services.auth import AuthService
from authgate.services.passwords import CredentialHasher
from authgate.services.revocation import RevocationStore
from authgate.services.tokens import TokenClaims, TokenIssuer, TokenParser, extract_bearer

__all__ = [
    "AuthService",
    "CredentialHasher",
    "RevocationStore",
    "TokenClaims",
    "TokenIssuer",
    "TokenParser",
    "extract_bearer",
]
