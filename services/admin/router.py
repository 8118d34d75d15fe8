"""
services/admin/router.py
Admin-only user moderation: list, role change, block/unblock, delete.
Admins cannot demote, block or delete themselves.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from config.database import DocumentStore, get_store
from shared.middleware.auth import Caller, require_admin
from shared.models.models import Collections, UserRole
from shared.schemas.schemas import (
    BlockUpdateRequest,
    MessageResponse,
    RoleUpdateRequest,
    UserResponse,
)
from shared.utils.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ── Helpers ────────────────────────────────────────────────────────────────────

def _not_self(admin: Caller, email: str, action: str) -> None:
    if admin.email == email:
        raise InvalidInput(f"Admins cannot {action} themselves")


async def _set_user_fields(store: DocumentStore, email: str, fields: dict) -> None:
    matched = await store.collection(Collections.USERS).update_one(
        {"email": email}, {"$set": fields}
    )
    if not matched:
        raise NotFound("User not found", email=email)


# ── Users ──────────────────────────────────────────────────────────────────────

@router.get("/users", response_model=list[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    current_user: Caller = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    query = {"role": role.value} if role else {}
    users = await store.collection(Collections.USERS).find(query, sort=[("createdAt", -1)])
    return [UserResponse.model_validate(u) for u in users]


@router.patch("/users/{email}/role", response_model=MessageResponse)
async def change_role(
    email: str,
    data: RoleUpdateRequest,
    current_user: Caller = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    if data.role != UserRole.ADMIN.value:
        _not_self(current_user, email, "demote")
    await _set_user_fields(store, email, {"role": data.role})
    logger.info("Admin %s set role of %s to %s", current_user.email, email, data.role)
    return MessageResponse(message=f"Role updated to {data.role}")


@router.patch("/users/{email}/block", response_model=MessageResponse)
async def set_blocked(
    email: str,
    data: BlockUpdateRequest,
    current_user: Caller = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    if data.blocked:
        _not_self(current_user, email, "block")
    await _set_user_fields(store, email, {"blocked": data.blocked})
    logger.info("Admin %s %s %s", current_user.email, "blocked" if data.blocked else "unblocked", email)
    return MessageResponse(message="User blocked" if data.blocked else "User unblocked")


@router.delete("/users/{email}", response_model=MessageResponse)
async def delete_user(
    email: str,
    current_user: Caller = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    _not_self(current_user, email, "delete")
    deleted = await store.collection(Collections.USERS).delete_one({"email": email})
    if not deleted:
        raise NotFound("User not found", email=email)
    logger.info("Admin %s deleted user %s", current_user.email, email)
    return MessageResponse(message="User deleted")
