"""Pydantic schemas for authentication API."""

from uuid import UUID

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request for user registration."""

    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(
        ...,
        min_length=3,
        max_length=255,
        pattern=r"^\s*[^@\s]+@[^@\s]+\s*$",
        description="Email address (stored lower-cased)",
    )
    password: str = Field(..., min_length=1, max_length=128)


class RegisterResponse(BaseModel):
    """Response after successful registration. Never includes the password hash."""

    message: str
    id: UUID
    username: str
    email: str


class LoginRequest(BaseModel):
    """Request for login."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Response with a bearer token."""

    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
