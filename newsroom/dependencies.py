import logging
from collections.abc import Iterable

from fastapi import Query, Request

from newsroom.container import Container
from newsroom.errors import Forbidden
from newsroom.mailer import Mailer
from newsroom.models import Role
from newsroom.security import IdentityClaim, PasswordHasher, TokenCodec
from newsroom.storage import ObjectStorage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def parse_limit(limit: int | None, default: int, maximum: int) -> int:
    """Absent or zero limit falls back to *default*; anything else is clamped to *maximum*."""
    if not limit:
        return default
    return min(limit, maximum)


class Pagination:
    def __init__(self, limit: int, offset: int) -> None:
        self.limit = limit
        self.offset = offset


class PaginationParams:
    """
    Reusable FastAPI dependency that parses ``limit`` / ``offset`` query
    parameters.  Each endpoint picks its own default and ceiling::

        @router.get("/popular")
        async def popular(pagination: Pagination = Depends(PaginationParams(4, 10))):
            ...
    """

    def __init__(self, default_limit: int, max_limit: int) -> None:
        self.default_limit = default_limit
        self.max_limit = max_limit

    def __call__(
        self,
        limit: int | None = Query(None, ge=0, description="Page size."),
        offset: int = Query(0, ge=0, description="Number of items to skip."),
    ) -> Pagination:
        return Pagination(parse_limit(limit, self.default_limit, self.max_limit), offset)


# ---------------------------------------------------------------------------
# Components wired at startup
# ---------------------------------------------------------------------------

def get_container(request: Request) -> Container:
    return request.app.state.container


def get_token_codec(request: Request) -> TokenCodec:
    return get_container(request).token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    return get_container(request).password_hasher


def get_storage(request: Request) -> ObjectStorage:
    return get_container(request).storage


def get_mailer(request: Request) -> Mailer:
    return get_container(request).mailer


# ---------------------------------------------------------------------------
# Identity and access
# ---------------------------------------------------------------------------

def get_identity(request: Request) -> IdentityClaim | None:
    """The claim attached by ``IdentityMiddleware``, or None for anonymous callers."""
    return getattr(request.state, "identity", None)


class AccessGuard:
    """
    Per-endpoint authorization check.

    An empty role set means "any authenticated user".  Used as a FastAPI
    dependency it returns the verified claim, so handlers can take it as a
    parameter::

        @router.post("")
        async def create(claim: IdentityClaim = Depends(require_staff)):
            ...
    """

    def __init__(self, roles: Iterable[Role] = ()) -> None:
        self.roles = frozenset(roles)

    def check(self, claim: IdentityClaim | None) -> IdentityClaim:
        if claim is None:
            raise Forbidden("User not authorized")
        if self.roles and claim.role not in self.roles:
            logger.info("Denied user %s with role %s", claim.id, claim.role.value)
            raise Forbidden("No permissions")
        return claim

    def __call__(self, request: Request) -> IdentityClaim:
        return self.check(get_identity(request))


require_user = AccessGuard()
require_staff = AccessGuard({Role.ADMIN, Role.MANAGER})
require_admin = AccessGuard({Role.ADMIN})
