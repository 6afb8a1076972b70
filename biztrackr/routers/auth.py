"""
Authentication router - JWT issuance.

Credential checks belong to the external identity provider; this service
only issues and verifies bearer tokens for an owner id.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from biztrackr.auth.jwt import create_access_token
from biztrackr.config import get_settings
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class TokenRequest(BaseModel):
    owner_id: str = Field(min_length=1, max_length=100)


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str
    expires_in: int
    owner_id: str


@router.post("/token", response_model=TokenResponse)
async def issue_token(request: TokenRequest):
    """Issue an access token for an owner (demo issuance)."""
    settings = get_settings()

    access_token = create_access_token(request.owner_id)

    logger.info("jwt_issued", owner_id=request.owner_id)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.jwt_expiration_minutes * 60,
        owner_id=request.owner_id,
    )


@router.post("/logout")
async def logout():
    """
    Logout endpoint.
    Tokens are stateless; clients discard them.
    """
    logger.info("user_logout")
    return {"success": True, "message": "Logged out successfully"}
