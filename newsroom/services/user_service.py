"""
User service: lookups and account updates for the User aggregate.

Lookups by a unique key raise ``NotFoundError`` instead of returning None,
so callers never have to re-check for a missing user.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.database import flush_unique
from newsroom.errors import NotFoundError
from newsroom.models import Role, User
from newsroom.schemas import Page, UserResponse
from newsroom.security import IdentityClaim


def user_to_dict(user: User) -> dict:
    """Serialise a User without its password hash."""
    return UserResponse.model_validate(user).model_dump(mode="json")


async def find_by_email(db: AsyncSession, email: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def find_by_id(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(
    db: AsyncSession,
    email: str,
    hashed_password: str,
    name: str | None = None,
    role: Role = Role.USER,
) -> User:
    """
    Insert a user whose password is already hashed.

    A duplicate email raises ``UniqueConstraintViolation``.
    """
    user = User(email=email, password=hashed_password, name=name, role=role)
    db.add(user)
    await flush_unique(db, "A user with this email already exists")
    return user


async def list_users(
    db: AsyncSession, claim: IdentityClaim, limit: int, offset: int
) -> Page:
    """Every user except the caller, oldest account first."""
    where = User.id != claim.id
    total = (await db.execute(select(func.count()).select_from(User).where(where))).scalar_one()
    result = await db.execute(
        select(User).where(where).order_by(User.id).offset(offset).limit(limit)
    )
    return Page(
        data=[user_to_dict(u) for u in result.scalars().all()],
        limit=limit,
        offset=offset,
        count=total,
    )


async def update_role(db: AsyncSession, user_id: int, role: Role) -> User:
    user = await find_by_id(db, user_id)
    user.role = role
    await db.flush()
    return user


async def update_password(db: AsyncSession, user_id: int, hashed_password: str) -> User:
    user = await find_by_id(db, user_id)
    user.password = hashed_password
    await db.flush()
    return user
