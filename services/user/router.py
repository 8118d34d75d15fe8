"""
services/user/router.py
Registration on first sign-in, profile and role lookup.
"""

import logging

from fastapi import APIRouter, Depends

from config.database import DocumentStore, DuplicateKeyError, get_store
from shared.middleware.auth import Caller, get_current_user
from shared.models.models import Collections, user_document
from shared.schemas.schemas import InsertResponse, RoleResponse, UserRegisterRequest, UserResponse
from shared.utils.errors import NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=InsertResponse)
async def register_user(
    data: UserRegisterRequest,
    current_user: Caller = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """
    Create the caller's user record with role 'user'.
    Idempotent: registering twice is not an error.
    """
    if current_user.user:
        return InsertResponse(inserted=False, id=current_user.user["_id"], message="User already exists")

    doc = user_document(current_user.email, data.name, data.photo_url)
    try:
        user_id = await store.collection(Collections.USERS).insert_one(doc)
    except DuplicateKeyError:
        return InsertResponse(inserted=False, message="User already exists")

    logger.info("Registered user %s", current_user.email)
    return InsertResponse(inserted=True, id=user_id)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Caller = Depends(get_current_user)):
    """Return the currently authenticated user's record."""
    if not current_user.user:
        raise NotFound("User not registered", email=current_user.email)
    return UserResponse.model_validate(current_user.user)


@router.get("/role", response_model=RoleResponse)
async def get_my_role(current_user: Caller = Depends(get_current_user)):
    """Role as resolved by the authorization guard ('user' when unregistered)."""
    return RoleResponse(role=current_user.role.value)
