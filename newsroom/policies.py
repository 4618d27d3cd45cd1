"""
Resource-level authorization rules for articles and comments.

These are plain functions over an ``IdentityClaim`` and the stored owner id;
services call them after loading the resource and before mutating it.
"""
from newsroom.errors import Forbidden
from newsroom.models import Role
from newsroom.security import IdentityClaim

ELEVATED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.MANAGER})


def ensure_owner_or_admin(claim: IdentityClaim, owner_id: int) -> None:
    """Allow mutation by the owner or by an ADMIN."""
    if claim.id != owner_id and claim.role != Role.ADMIN:
        raise Forbidden("Access denied")


def ensure_can_read_private(claim: IdentityClaim, owner_id: int) -> None:
    """Unpublished content is readable by elevated roles and by its owner."""
    if claim.role not in ELEVATED_ROLES and claim.id != owner_id:
        raise Forbidden("Access denied")


def draft_owner_scope(claim: IdentityClaim) -> int | None:
    """
    Owner filter for the draft listing: ``None`` (every owner) for an
    ADMIN, the caller's own id for everybody else.
    """
    return None if claim.role == Role.ADMIN else claim.id
