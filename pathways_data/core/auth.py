from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pathways_data.core.errors import ForbiddenError


class Role(str, Enum):
    """Roles issued by the external auth provider."""

    STUDENT = "student"
    COUNSELOR = "counselor"
    ADMINISTRATOR = "administrator"


class AuthSession(BaseModel):
    """The current actor as supplied by the auth collaborator. Credentials are verified upstream."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="Identity provider user id")
    role: Role = Field(..., description="Role claim for the current actor")


# PUBLIC_INTERFACE
def require_roles(actor: AuthSession, *required: Role) -> AuthSession:
    """
    Ensure the actor is an AuthSession holding one of the required roles.

    Raises:
        ForbiddenError: when no actor session is given, or its role is not among ``required``.
    Returns:
        The actor, for call-site chaining.
    """
    if not isinstance(actor, AuthSession):
        raise ForbiddenError(
            "An authenticated actor is required",
            details={"actor": type(actor).__name__, "required": [r.value for r in required]},
        )
    if actor.role not in set(required):
        raise ForbiddenError(
            "Insufficient role",
            details={"role": actor.role.value, "required": [r.value for r in required]},
        )
    return actor
