"""Profile endpoint - the protected route of the service."""

from fastapi import APIRouter, Depends

from authgate.api.auth import get_current_claims
from authgate.schemas.auth import MessageResponse
from authgate.services.tokens import TokenClaims

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=MessageResponse)
async def get_profile(claims: TokenClaims = Depends(get_current_claims)) -> MessageResponse:
    """Greet the authenticated user using the identity carried by the token."""
    return MessageResponse(message=f"Welcome {claims.email}")
