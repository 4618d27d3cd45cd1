from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.config import settings
from newsroom.database import get_db
from newsroom.dependencies import (
    get_mailer,
    get_password_hasher,
    get_token_codec,
    require_user,
)
from newsroom.mailer import Mailer
from newsroom.schemas import (
    AccessTokenResponse,
    ForgotPassword,
    LoginResponse,
    RestorePassword,
    UserLogin,
    UserRegister,
    UserResponse,
)
from newsroom.security import REFRESH_COOKIE, IdentityClaim, PasswordHasher, TokenCodec
from newsroom.services import auth_service
from newsroom.services.user_service import user_to_dict

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    data: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
):
    user = await auth_service.authenticate(db, hasher, data.email, data.password)
    access, refresh = auth_service.issue_tokens(codec, user)
    response.headers.append("set-cookie", refresh.cookie)
    return {"user": user_to_dict(user), "access_token": access.token}


@router.post("/register", status_code=201, response_model=UserResponse)
async def register(
    data: UserRegister,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    user = await auth_service.register(db, hasher, data.email, data.password)
    return user_to_dict(user)


@router.get("/token", response_model=AccessTokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
):
    _, access, refresh = await auth_service.refresh(db, codec, request.cookies.get(REFRESH_COOKIE))
    response.headers.append("set-cookie", refresh.cookie)
    return {"access_token": access.token}


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPassword,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    mailer: Mailer = Depends(get_mailer),
):
    url = await auth_service.restore_link(db, codec, data.email, settings.CLIENT_URL)
    if url is not None:
        background_tasks.add_task(mailer.send_restore_password_link, data.email, url)
    return {}


@router.post("/restore-password", status_code=204)
async def restore_password(
    data: RestorePassword,
    claim: IdentityClaim = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    await auth_service.restore_password(db, hasher, claim, data.password1)


@router.get("/logout")
async def logout(response: Response, claim: IdentityClaim = Depends(require_user)):
    response.delete_cookie(REFRESH_COOKIE, path="/", httponly=True)
    return {}
