from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.database import get_db
from newsroom.dependencies import Pagination, PaginationParams, require_admin, require_user
from newsroom.schemas import MeResponse, Page, UserRoleUpdate
from newsroom.security import IdentityClaim
from newsroom.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=Page)
async def list_users(
    pagination: Pagination = Depends(PaginationParams(10, 100)),
    claim: IdentityClaim = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db, claim, pagination.limit, pagination.offset)


@router.get("/me", response_model=MeResponse)
async def me(claim: IdentityClaim = Depends(require_user), db: AsyncSession = Depends(get_db)):
    user = await user_service.find_by_id(db, claim.id)
    return {"user": user_service.user_to_dict(user)}


@router.patch("/{user_id}", status_code=204, dependencies=[Depends(require_admin)])
async def update_role(user_id: int, data: UserRoleUpdate, db: AsyncSession = Depends(get_db)):
    await user_service.update_role(db, user_id, data.role)
