"""
services/auth/router.py
Session endpoints for identity-provider tokens: whoami and logout.
Logout revokes the token's jti until the token would have expired.
"""

from fastapi import APIRouter, Depends

from config.redis_client import TokenDenyList, get_redis
from shared.middleware.auth import Caller, get_current_user
from shared.schemas.schemas import MeResponse, MessageResponse
from shared.utils.security import get_token_remaining_ttl

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=MeResponse)
async def whoami(current_user: Caller = Depends(get_current_user)):
    return MeResponse(
        email=current_user.email,
        role=current_user.role.value,
        registered=current_user.user is not None,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: Caller = Depends(get_current_user),
    redis=Depends(get_redis),
):
    """Deny-list the current access token."""
    principal = current_user.principal
    if principal.jti:
        ttl = get_token_remaining_ttl(principal.payload)
        await TokenDenyList(redis).revoke(principal.jti, ttl)
    return MessageResponse(message="Logged out successfully")
