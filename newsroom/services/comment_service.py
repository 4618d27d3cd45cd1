"""
Comment service: moderated comments on articles.

New comments start as drafts and only appear in the public listing once
published.  Publishing is one-way; there is no unpublish.  Every write that
changes the published set invalidates the article list cache, because list
pages carry a published comment count.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from newsroom.cache import cache
from newsroom.database import after_commit
from newsroom.errors import NotFoundError
from newsroom.models import Article, Comment
from newsroom.policies import ensure_owner_or_admin
from newsroom.schemas import CommentCreate, Page
from newsroom.security import IdentityClaim

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: Comment) -> dict:
    """
    Serialise a comment.  ``user`` and ``article`` summaries are included
    only when the relationship was eager-loaded.
    """
    data = {
        "id": comment.id,
        "text": comment.text,
        "published": comment.published,
        "article_id": comment.article_id,
        "user_id": comment.user_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "user": None,
        "article": None,
    }
    if comment.user is not None:
        data["user"] = {
            "id": comment.user.id,
            "name": comment.user.name,
            "email": comment.user.email,
        }
    if comment.article is not None:
        data["article"] = {"id": comment.article.id, "title": comment.article.title}
    return data


async def _get_by_id(db: AsyncSession, comment_id: int) -> Comment:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


async def create_comment(db: AsyncSession, data: CommentCreate, claim: IdentityClaim) -> dict:
    """Add a draft comment by the caller to an existing article."""
    if await db.get(Article, data.article_id) is None:
        raise NotFoundError("Article not found")

    comment = Comment(text=data.text, article_id=data.article_id, user_id=claim.id)
    db.add(comment)
    await db.flush()
    logger.info("User %s commented on article %s", claim.id, data.article_id)
    return _comment_to_dict(comment)


async def list_published_for_article(
    db: AsyncSession, article_id: int, limit: int, offset: int
) -> Page:
    """Published comments of one article with their authors, newest first."""
    where = (Comment.article_id == article_id, Comment.published.is_(True))
    total = (
        await db.execute(select(func.count()).select_from(Comment).where(*where))
    ).scalar_one()
    result = await db.execute(
        select(Comment)
        .where(*where)
        .options(joinedload(Comment.user))
        .execution_options(populate_existing=True)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return Page(
        data=[_comment_to_dict(c) for c in result.scalars().all()],
        limit=limit,
        offset=offset,
        count=total,
    )


async def list_drafts(db: AsyncSession, limit: int, offset: int) -> Page:
    """Moderation queue: unpublished comments, oldest first."""
    where = Comment.published.is_(False)
    total = (
        await db.execute(select(func.count()).select_from(Comment).where(where))
    ).scalar_one()
    result = await db.execute(
        select(Comment)
        .where(where)
        .options(joinedload(Comment.user), joinedload(Comment.article))
        .execution_options(populate_existing=True)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset(offset)
        .limit(limit)
    )
    return Page(
        data=[_comment_to_dict(c) for c in result.scalars().all()],
        limit=limit,
        offset=offset,
        count=total,
    )


async def publish_comment(db: AsyncSession, comment_id: int) -> dict:
    comment = await _get_by_id(db, comment_id)
    if not comment.published:
        comment.published = True
        await db.flush()
        after_commit(db, cache.invalidate_articles)
        logger.info("Published comment %s", comment_id)
    return _comment_to_dict(comment)


async def delete_comment(db: AsyncSession, comment_id: int, claim: IdentityClaim) -> None:
    comment = await _get_by_id(db, comment_id)
    ensure_owner_or_admin(claim, comment.user_id)

    await db.delete(comment)
    await db.flush()
    if comment.published:
        after_commit(db, cache.invalidate_articles)
    logger.info("User %s deleted comment %s", claim.id, comment_id)
