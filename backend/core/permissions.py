"""Authorization guard for ledger operations.

Admins act across every location. Every other role is scoped to exactly one
home location and may only act on records owned by it.
"""
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from services.exceptions import ForbiddenError

ROLE_ADMIN = "admin"
ROLE_COMMANDER = "commander"
ROLE_LOGISTICS = "logistics"
ROLE_UNIT_LEADER = "unit_leader"

ROLES = (ROLE_ADMIN, ROLE_COMMANDER, ROLE_LOGISTICS, ROLE_UNIT_LEADER)


@dataclass(frozen=True)
class Principal:
    id: UUID
    role: str
    location_id: Optional[UUID] = None

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(id=user.id, role=user.role, location_id=user.location_id)

    @property
    def is_elevated(self) -> bool:
        return self.role == ROLE_ADMIN


def has_any_role(principal: Principal, roles: Iterable[str]) -> bool:
    return principal.role in set(roles)


def can_access_location(principal: Principal, location_id: Optional[UUID]) -> bool:
    """Permit/deny decision for acting on a record owned by `location_id`."""
    if principal.is_elevated:
        return True
    if principal.location_id is None or location_id is None:
        return False
    return principal.location_id == location_id


def ensure_role(principal: Principal, roles: Iterable[str]):
    if not has_any_role(principal, roles):
        raise ForbiddenError("You do not have permission to perform this action")


def ensure_location_access(principal: Principal, location_id: Optional[UUID], message: str):
    if not can_access_location(principal, location_id):
        raise ForbiddenError(message)


def ensure_home_location(principal: Principal) -> UUID:
    """Non-admin callers must have a home base before touching location-scoped records."""
    if principal.location_id is None:
        raise ForbiddenError("User has no base assigned. Cannot perform this operation.")
    return principal.location_id
