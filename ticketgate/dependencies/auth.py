from collections.abc import Callable
from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


class Role(str, Enum):
    """Supported roles."""

    ADMIN = "admin"
    STAFF = "staff"
    ATTENDEE = "attendee"


class User:
    """Simple representation of an authenticated user."""

    def __init__(self, username: str, roles: tuple[Role, ...]):
        self.username = username
        self.roles = roles

    def has_role(self, role: Role) -> bool:
        return role in self.roles


ANONYMOUS = User(username="anonymous", roles=(Role.ATTENDEE,))

_TOKEN_MAP: dict[str, tuple[str, tuple[Role, ...]]] = {
    "admin-token": ("admin", (Role.ADMIN, Role.STAFF, Role.ATTENDEE)),
    "staff-token": ("gate-staff", (Role.STAFF, Role.ATTENDEE)),
    "attendee-token": ("attendee", (Role.ATTENDEE,)),
}

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_token(token: str | None) -> User | None:
    """Map a static token to its user; ``None`` for unknown tokens.

    Stand-in for real token verification, which belongs to the wallet/identity
    layer in front of this service.
    """

    if not token:
        return ANONYMOUS
    if token not in _TOKEN_MAP:
        return None
    username, roles = _TOKEN_MAP[token]
    return User(username=username, roles=roles)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)]
) -> User:
    user = resolve_token(None if credentials is None else credentials.credentials)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    return user


def role_required(role: Role) -> Callable[[User], User]:
    """Dependency factory ensuring the current user has the requested role."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not user.has_role(role):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
