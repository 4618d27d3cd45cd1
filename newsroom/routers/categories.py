from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.database import get_db
from newsroom.dependencies import require_staff
from newsroom.schemas import CategoryCreate, CategoryResponse
from newsroom.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.post("", status_code=201, response_model=CategoryResponse, dependencies=[Depends(require_staff)])
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_category(db, data)


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await category_service.list_categories(db)
