"""
shared/middleware/auth.py
FastAPI dependency functions for authentication and authorization.
JWT is validated here; the caller's role always comes from their user
record, looked up through AuthorizationGuard.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from config.database import DocumentStore, get_store
from config.redis_client import TokenDenyList, get_redis
from shared.models.models import Collections, UserRole
from shared.utils.errors import AccessDenied, InvalidCredential, Unauthenticated
from shared.utils.security import verify_access_token

security = HTTPBearer(auto_error=False)


class Principal:
    """Verified identity from the bearer token."""

    def __init__(self, payload: dict):
        self.email: str = payload["email"]
        self.jti: Optional[str] = payload.get("jti")
        self.payload = payload


class Caller:
    """Principal plus the role resolved from the user record."""

    def __init__(self, principal: Principal, role: UserRole, user: Optional[dict]):
        self.principal = principal
        self.email = principal.email
        self.role = role
        self.user = user

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    redis=Depends(get_redis),
) -> Principal:
    """
    Extract and validate JWT from Authorization header.
    Checks deny-list in Redis to handle revoked tokens (logout).
    """
    if not credentials:
        raise Unauthenticated()

    try:
        payload = verify_access_token(credentials.credentials)
    except JWTError:
        raise InvalidCredential()

    # Check if token has been revoked (logged out)
    jti = payload.get("jti")
    if jti and await TokenDenyList(redis).is_revoked(jti):
        raise InvalidCredential("Token has been revoked")

    return Principal(payload)


class AuthorizationGuard:
    """
    Resolves roles by re-reading the user record on every request.
    Swap this class for a cached or claims-based check without touching
    any business logic.
    """

    def __init__(self, store: DocumentStore):
        self.users = store.collection(Collections.USERS)

    async def resolve(self, principal: Principal) -> Caller:
        user = await self.users.find_one({"email": principal.email})
        if user and user.get("blocked"):
            raise AccessDenied("User account is blocked")
        return Caller(principal, _role_of(user), user)

    @staticmethod
    def require(caller: Caller, *roles: UserRole) -> Caller:
        if caller.role not in roles:
            raise AccessDenied(f"Required role: {[r.value for r in roles]}")
        return caller


def _role_of(user: Optional[dict]) -> UserRole:
    if not user:
        return UserRole.USER
    try:
        return UserRole(user.get("role") or UserRole.USER.value)
    except ValueError:
        return UserRole.USER


def get_guard(store: DocumentStore = Depends(get_store)) -> AuthorizationGuard:
    return AuthorizationGuard(store)


async def get_current_user(
    principal: Principal = Depends(get_principal),
    guard: AuthorizationGuard = Depends(get_guard),
) -> Caller:
    """Authenticated caller with their resolved role."""
    return await guard.resolve(principal)


class RoleRequired:
    """Dependency factory for role-based access control."""

    def __init__(self, *roles: UserRole):
        self.roles = roles

    async def __call__(
        self,
        current_user: Caller = Depends(get_current_user),
    ) -> Caller:
        return AuthorizationGuard.require(current_user, *self.roles)


# Convenience role dependencies
require_decorator = RoleRequired(UserRole.DECORATOR)
require_admin = RoleRequired(UserRole.ADMIN)
