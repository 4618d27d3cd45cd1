from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.cache import CATEGORY_LIST_KEY, cache
from newsroom.config import settings
from newsroom.database import after_commit, flush_unique
from newsroom.errors import NotFoundError
from newsroom.models import Category
from newsroom.schemas import CategoryCreate, CategoryResponse


def category_to_dict(category: Category) -> dict:
    return CategoryResponse.model_validate(category).model_dump(mode="json")


async def create_category(db: AsyncSession, data: CategoryCreate) -> dict:
    category = Category(title=data.title, url=data.url)
    db.add(category)
    await flush_unique(db, "A category with this title or url already exists")
    after_commit(db, cache.invalidate_categories)
    return category_to_dict(category)


async def list_categories(db: AsyncSession) -> list[dict]:
    cached = await cache.get(CATEGORY_LIST_KEY)
    if cached is not None:
        return cached

    result = await db.execute(select(Category).order_by(Category.id))
    categories = [category_to_dict(c) for c in result.scalars().all()]
    await cache.set(CATEGORY_LIST_KEY, categories, ttl=settings.CACHE_TTL_CATEGORIES)
    return categories


async def find_by_url(db: AsyncSession, url: str) -> Category:
    result = await db.execute(select(Category).where(Category.url == url))
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category not found")
    return category
