"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Public list pages (recent, popular, per category) go through the
  cache-aside pattern.  Detail reads are never cached: every fetch of a
  published article bumps its view counter.
- The view counter is bumped with a single ``UPDATE ... SET views = views
  + 1`` so concurrent readers never lose an increment.
- Ownership and visibility decisions are delegated to ``newsroom.policies``;
  role requirements are enforced earlier by the route's ``AccessGuard``.
- ``category`` is eager-loaded with ``joinedload``; comment counts come
  from one grouped COUNT per page instead of one query per article.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from newsroom.cache import article_list_key, cache
from newsroom.config import settings
from newsroom.database import after_commit, flush_unique
from newsroom.errors import NotFoundError
from newsroom.models import Article, Category, Comment
from newsroom.policies import draft_owner_scope, ensure_can_read_private, ensure_owner_or_admin
from newsroom.schemas import ArticleCreate, ArticleUpdate, Page
from newsroom.security import IdentityClaim
from newsroom.services.category_service import category_to_dict, find_by_url as find_category_by_url

logger = logging.getLogger(__name__)

# Orderings exposed by the public listings.
RECENT = "recent"
POPULAR = "popular"
_ORDERINGS = {
    RECENT: (Article.id.desc(),),
    POPULAR: (Article.views.desc(), Article.id.desc()),
}

# Columns that must never be set to NULL by a partial update.
_REQUIRED_FIELDS = frozenset({"title", "url", "content", "category_id"})


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article, comments_count: int = 0) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "url": article.url,
        "spoiler": article.spoiler,
        "content": article.content,
        "cover_image": article.cover_image,
        "picture": article.picture,
        "published": article.published,
        "views": article.views,
        "user_id": article.user_id,
        "category_id": article.category_id,
        "category": category_to_dict(article.category) if article.category else None,
        "comments_count": comments_count,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "updated_at": article.updated_at.isoformat() if article.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _select_articles():
    # populate_existing refreshes objects already in the session identity map
    return (
        select(Article)
        .options(joinedload(Article.category))
        .execution_options(populate_existing=True)
    )


async def _comment_counts(db: AsyncSession, article_ids: list[int]) -> dict[int, int]:
    """Published comment count per article, in one grouped query."""
    if not article_ids:
        return {}
    q = (
        select(Comment.article_id, func.count(Comment.id))
        .where(Comment.article_id.in_(article_ids), Comment.published.is_(True))
        .group_by(Comment.article_id)
    )
    return {article_id: count for article_id, count in (await db.execute(q)).all()}


async def _serialize_one(db: AsyncSession, article: Article) -> dict:
    counts = await _comment_counts(db, [article.id])
    return _article_to_dict(article, counts.get(article.id, 0))


async def _get_by_id(db: AsyncSession, article_id: int) -> Article:
    result = await db.execute(_select_articles().where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def _get_by_url(db: AsyncSession, url: str) -> Article:
    result = await db.execute(_select_articles().where(Article.url == url))
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def _ensure_category(db: AsyncSession, category_id: int) -> None:
    if await db.get(Category, category_id) is None:
        raise NotFoundError("Category not found")


async def _paginate(
    db: AsyncSession,
    where: list,
    order_by: tuple,
    limit: int,
    offset: int,
) -> Page:
    """Two statements: COUNT with *where*, then one page of rows."""
    count_q = select(func.count()).select_from(Article)
    if where:
        count_q = count_q.where(*where)
    total: int = (await db.execute(count_q)).scalar_one()

    rows_q = _select_articles().order_by(*order_by).offset(offset).limit(limit)
    if where:
        rows_q = rows_q.where(*where)
    articles = (await db.execute(rows_q)).scalars().all()

    counts = await _comment_counts(db, [a.id for a in articles])
    return Page(
        data=[_article_to_dict(a, counts.get(a.id, 0)) for a in articles],
        limit=limit,
        offset=offset,
        count=total,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_published(
    db: AsyncSession, limit: int, offset: int, ordering: str = RECENT
) -> Page:
    """Published articles, newest first or most viewed first."""
    cache_key = article_list_key(ordering, limit, offset)
    cached = await cache.get(cache_key)
    if cached:
        return Page(**cached)

    page = await _paginate(
        db, [Article.published.is_(True)], _ORDERINGS[ordering], limit, offset
    )
    await cache.set(cache_key, page.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return page


async def list_by_category_url(
    db: AsyncSession, url: str, limit: int, offset: int
) -> Page:
    """Published articles of one category; an unknown category is a 404."""
    category = await find_category_by_url(db, url)

    cache_key = article_list_key("category", url, limit, offset)
    cached = await cache.get(cache_key)
    if cached:
        return Page(**cached)

    page = await _paginate(
        db,
        [Article.published.is_(True), Article.category_id == category.id],
        _ORDERINGS[RECENT],
        limit,
        offset,
    )
    await cache.set(cache_key, page.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return page


async def list_drafts(
    db: AsyncSession, claim: IdentityClaim, limit: int, offset: int
) -> Page:
    """
    Unpublished articles visible to *claim*: all of them for an ADMIN,
    only the caller's own for everybody else.
    """
    where = [Article.published.is_(False)]
    owner_id = draft_owner_scope(claim)
    if owner_id is not None:
        where.append(Article.user_id == owner_id)
    return await _paginate(db, where, _ORDERINGS[RECENT], limit, offset)


async def find_by_url(db: AsyncSession, url: str) -> dict:
    """
    Return a published article by its public url and count the view.

    Drafts answer 404 exactly like missing articles.
    """
    article = await _get_by_url(db, url)
    if not article.published:
        raise NotFoundError("Article not found")

    await increment_views(db, article.id)
    await db.refresh(article, ["views"])
    return await _serialize_one(db, article)


async def find_private_by_url(db: AsyncSession, url: str, claim: IdentityClaim) -> dict:
    """Any article by url, for elevated roles or the owner; no view is counted."""
    article = await _get_by_url(db, url)
    ensure_can_read_private(claim, article.user_id)
    return await _serialize_one(db, article)


async def increment_views(db: AsyncSession, article_id: int) -> None:
    await db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(views=Article.views + 1, updated_at=Article.updated_at)
        .execution_options(synchronize_session=False)
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, data: ArticleCreate, claim: IdentityClaim) -> dict:
    """Create a draft owned by the caller."""
    await _ensure_category(db, data.category_id)

    article = Article(**data.model_dump(), user_id=claim.id, published=False, views=0)
    db.add(article)
    await flush_unique(db, "An article with this url already exists")
    after_commit(db, cache.invalidate_articles)

    logger.info("User %s created article %s", claim.id, article.id)
    return await _serialize_one(db, await _get_by_id(db, article.id))


async def update_article(
    db: AsyncSession, article_id: int, data: ArticleUpdate, claim: IdentityClaim
) -> dict:
    """
    Partially update an article owned by the caller (or any article for an
    ADMIN).  Only fields present in the payload are touched.
    """
    article = await _get_by_id(db, article_id)
    ensure_owner_or_admin(claim, article.user_id)

    update_data = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }
    if "category_id" in update_data:
        await _ensure_category(db, update_data["category_id"])

    for field, value in update_data.items():
        setattr(article, field, value)

    await flush_unique(db, "An article with this url already exists")
    after_commit(db, cache.invalidate_articles)
    return await _serialize_one(db, await _get_by_id(db, article_id))


async def publish_article(db: AsyncSession, article_id: int) -> dict:
    """Move a draft to published.  Publishing twice is a no-op."""
    article = await _get_by_id(db, article_id)
    if not article.published:
        article.published = True
        await db.flush()
        after_commit(db, cache.invalidate_articles)
        logger.info("Published article %s", article_id)
    return await _serialize_one(db, article)


async def delete_article(db: AsyncSession, article_id: int, claim: IdentityClaim) -> None:
    article = await _get_by_id(db, article_id)
    ensure_owner_or_admin(claim, article.user_id)

    await db.delete(article)
    await db.flush()
    after_commit(db, cache.invalidate_articles)
    logger.info("User %s deleted article %s", claim.id, article_id)
