from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.database import get_db
from newsroom.dependencies import Pagination, PaginationParams, require_admin, require_staff
from newsroom.schemas import ArticleCreate, ArticleResponse, ArticleUpdate, Page
from newsroom.security import IdentityClaim
from newsroom.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

# Static paths are declared before "/{url}" so they are not captured by it.


@router.get("", response_model=Page)
async def list_articles(
    pagination: Pagination = Depends(PaginationParams(10, 10)),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_published(db, pagination.limit, pagination.offset)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.create_article(db, data, claim)


@router.get("/draft", response_model=Page)
async def list_drafts(
    pagination: Pagination = Depends(PaginationParams(5, 10)),
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_drafts(db, claim, pagination.limit, pagination.offset)


@router.get("/popular", response_model=Page)
async def list_popular(
    pagination: Pagination = Depends(PaginationParams(4, 10)),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_published(
        db, pagination.limit, pagination.offset, ordering=article_service.POPULAR
    )


@router.get("/category/{url}", response_model=Page)
async def list_by_category(
    url: str,
    pagination: Pagination = Depends(PaginationParams(5, 10)),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_by_category_url(db, url, pagination.limit, pagination.offset)


@router.get("/{url}", response_model=ArticleResponse)
async def get_article(url: str, db: AsyncSession = Depends(get_db)):
    return await article_service.find_by_url(db, url)


@router.get("/{url}/private", response_model=ArticleResponse)
async def get_private_article(
    url: str,
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.find_private_by_url(db, url, claim)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.update_article(db, article_id, data, claim)


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    claim: IdentityClaim = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, article_id, claim)


@router.post("/{article_id}/publish", response_model=ArticleResponse, dependencies=[Depends(require_admin)])
async def publish_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.publish_article(db, article_id)
