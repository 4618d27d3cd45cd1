from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.database import get_db
from newsroom.dependencies import Pagination, PaginationParams, require_staff, require_user
from newsroom.schemas import CommentCreate, CommentResponse, Page
from newsroom.security import IdentityClaim
from newsroom.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.post("", status_code=201, response_model=CommentResponse)
async def create_comment(
    data: CommentCreate,
    claim: IdentityClaim = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, data, claim)


@router.get("/article/{article_id}", response_model=Page)
async def list_article_comments(
    article_id: int,
    pagination: Pagination = Depends(PaginationParams(5, 10)),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_published_for_article(
        db, article_id, pagination.limit, pagination.offset
    )


@router.get("/draft", response_model=Page, dependencies=[Depends(require_staff)])
async def list_draft_comments(
    pagination: Pagination = Depends(PaginationParams(5, 10)),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_drafts(db, pagination.limit, pagination.offset)


# Publishing is not role-gated; see DESIGN.md (open questions).
@router.post("/{comment_id}/publish", response_model=CommentResponse)
async def publish_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.publish_comment(db, comment_id)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, claim)
