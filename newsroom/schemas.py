from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from newsroom.models import Role

PASSWORD_MIN_LENGTH = 8


# --- Auth ---

class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class UserLogin(Credentials):
    pass


class UserRegister(Credentials):
    pass


class ForgotPassword(BaseModel):
    email: EmailStr


class RestorePassword(BaseModel):
    password1: str = Field(min_length=PASSWORD_MIN_LENGTH)
    password2: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @model_validator(mode="after")
    def passwords_match(self) -> "RestorePassword":
        if self.password1 != self.password2:
            raise ValueError("password2 must match password1")
        return self


class AccessTokenResponse(BaseModel):
    access_token: str


# --- User ---

class UserResponse(BaseModel):
    """Public projection of a user; never carries the password hash."""

    id: int
    name: str | None = None
    email: str
    role: Role
    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str


class MeResponse(BaseModel):
    user: UserResponse


class UserRoleUpdate(BaseModel):
    role: Role


# --- Category ---

class CategoryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=150)
    url: str = Field(min_length=1, max_length=150)


class CategoryResponse(CategoryCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleCreate(BaseModel):
    # published / views / user_id are not client-settable
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=300)
    url: str = Field(min_length=1, max_length=350)
    spoiler: str | None = Field(None, max_length=500)
    content: str
    cover_image: str | None = Field(None, max_length=500)
    picture: str | None = Field(None, max_length=500)
    category_id: int


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=300)
    url: str | None = Field(None, min_length=1, max_length=350)
    spoiler: str | None = Field(None, max_length=500)
    content: str | None = None
    cover_image: str | None = Field(None, max_length=500)
    picture: str | None = Field(None, max_length=500)
    category_id: int | None = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    url: str
    spoiler: str | None
    content: str
    cover_image: str | None
    picture: str | None
    published: bool
    views: int
    user_id: int
    category_id: int
    category: CategoryResponse | None = None
    comments_count: int = 0
    created_at: datetime
    updated_at: datetime


# --- Comment ---

class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1)
    article_id: int


class CommentResponse(BaseModel):
    id: int
    text: str
    published: bool
    article_id: int
    user_id: int
    created_at: datetime
    user: dict | None = None
    article: dict | None = None


# --- Images ---

class ImageDelete(BaseModel):
    paths: list[str] = Field(min_length=1)


# --- Pagination ---

class Page(BaseModel):
    data: list
    limit: int
    offset: int
    count: int
