"""
Auth service: credential verification, registration, token refresh and
password restore.

Login failures deliberately look the same whether the email is unknown or
the password is wrong: same exception, same message, and an unknown email
still costs one bcrypt verification.
"""
import logging
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.errors import Forbidden, InvalidCredentialsError, NotFoundError
from newsroom.models import User
from newsroom.security import IdentityClaim, IssuedToken, PasswordHasher, TokenCodec
from newsroom.services import user_service

logger = logging.getLogger(__name__)


async def authenticate(
    db: AsyncSession, hasher: PasswordHasher, email: str, password: str
) -> User:
    """Return the stored user for a matching email/password pair."""
    try:
        user = await user_service.find_by_email(db, email)
    except NotFoundError as exc:
        hasher.verify_dummy(password)
        logger.info("Failed login for unknown account")
        raise InvalidCredentialsError() from exc

    if not hasher.verify(password, user.password):
        logger.info("Failed login for user %s", user.id)
        raise InvalidCredentialsError()
    return user


async def register(
    db: AsyncSession, hasher: PasswordHasher, email: str, password: str
) -> User:
    return await user_service.create_user(db, email, hasher.hash(password))


def issue_tokens(codec: TokenCodec, user: User) -> tuple[IssuedToken, IssuedToken]:
    """Return ``(access, refresh)`` tokens for *user*."""
    claim = IdentityClaim.from_user(user)
    return codec.issue_access(claim), codec.issue_refresh(claim)


async def refresh(
    db: AsyncSession, codec: TokenCodec, refresh_token: str | None
) -> tuple[User, IssuedToken, IssuedToken]:
    """
    Exchange a refresh token for a new access token and a rotated refresh
    token.  The user is re-read so a role change takes effect immediately.
    """
    if not refresh_token:
        raise Forbidden("Access denied")
    claim = codec.verify_refresh(refresh_token)
    user = await user_service.find_by_id(db, claim.id)
    access, rotated = issue_tokens(codec, user)
    return user, access, rotated


async def restore_link(
    db: AsyncSession, codec: TokenCodec, email: str, client_url: str
) -> str | None:
    """
    Build the password-restore URL carrying a short-lived access token, or
    ``None`` when no account uses *email*.  Callers answer both cases alike.
    """
    try:
        user = await user_service.find_by_email(db, email)
    except NotFoundError:
        logger.info("Password restore requested for unknown account")
        return None
    access = codec.issue_access(IdentityClaim.from_user(user))
    return f"{client_url.rstrip('/')}/restore-password?{urlencode({'token': access.token})}"


async def restore_password(
    db: AsyncSession, hasher: PasswordHasher, claim: IdentityClaim, password: str
) -> None:
    user = await user_service.find_by_id(db, claim.id)
    await user_service.update_password(db, user.id, hasher.hash(password))
    logger.info("Password updated for user %s", user.id)
