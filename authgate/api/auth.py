"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core import get_db
from authgate.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from authgate.services.auth import AuthService
from authgate.services.errors import (
    AuthError,
    DuplicateCredentialError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    TokenExpiredError,
    TokenRevokedError,
)
from authgate.services.tokens import TokenClaims, extract_bearer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_auth_service(request: Request, db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(
        db,
        request.app.state.auth_config,
        timeout=request.app.state.settings.db_operation_timeout,
        hasher=request.app.state.hasher,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_CHALLENGE,
    )


def _internal_error(operation: str, e: AuthError) -> HTTPException:
    """Hashing, signing and storage failures: log the type, return a generic 500."""
    logger.error(f"{operation} failed: {type(e).__name__}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


async def get_current_claims(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """Dependency guarding protected routes.

    Verifies signature and expiry, then asks the auth service whether the
    token was revoked.
    """
    authorization = request.headers.get("Authorization")
    token = extract_bearer(authorization)

    if token is None:
        raise _unauthorized("Missing or invalid authorization header")

    try:
        # Expired tokens are rejected before any store lookup, so an expired
        # and revoked token reports "Token has expired". Both are 401.
        claims = auth_service.parser.verify(token)
        await auth_service.admission_check(authorization)
        return claims
    except TokenExpiredError as e:
        raise _unauthorized("Token has expired") from e
    except TokenRevokedError as e:
        logger.warning(f"Revoked token used for: {request.method} {request.url.path}")
        raise _unauthorized("Token has been revoked") from e
    except InvalidTokenError as e:
        logger.debug(f"Invalid token for: {request.method} {request.url.path} - {e}")
        raise _unauthorized("Invalid token") from e
    except AuthError as e:
        raise _internal_error("Admission check", e) from e


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Register a new user.

    Returns 409 Conflict if the username or email is already taken.
    """
    try:
        user = await auth_service.register(
            username=request.username,
            email=request.email,
            password=request.password,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DuplicateCredentialError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already exists",
        ) from e
    except AuthError as e:
        raise _internal_error("Registration", e) from e

    return RegisterResponse(
        message="User created successfully",
        id=user.id,
        username=user.username,
        email=user.email,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate with email and password and get a bearer token."""
    try:
        token = await auth_service.login(email=request.email, password=request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from e
    except AuthError as e:
        raise _internal_error("Login", e) from e

    return TokenResponse(token=token, expires_in=auth_service.issuer.expires_in)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Log out by revoking the presented bearer token.

    The token stays revoked for the remainder of its lifetime. Logging out
    with an already revoked token succeeds.
    """
    try:
        await auth_service.logout(request.headers.get("Authorization"))
    except InvalidTokenError as e:
        raise _unauthorized("Missing or invalid token") from e
    except AuthError as e:
        raise _internal_error("Logout", e) from e

    return MessageResponse(message="Logged out successfully")
