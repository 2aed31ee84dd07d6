# authgate Pydantic Schemas
from authgate.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)

__all__ = [
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
]
