from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DeptSmallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class RoleSmallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    level: int
    data_scope: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    nick_name: str | None
    email: str
    phone: str | None
    gender: str | None
    avatar_name: str | None
    enabled: bool
    dept: DeptSmallOut | None
    roles: list[RoleSmallOut]
    pwd_reset_time: datetime | None
    created_at: datetime


class UserPage(BaseModel):
    content: list[UserOut] = Field(default_factory=list)
    total_elements: int = 0


class UserCreate(BaseModel):
    username: str = Field(min_length=2, max_length=50)
    nick_name: str | None = Field(default=None, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    gender: str | None = Field(default=None, max_length=10)
    enabled: bool = True
    dept_id: int | None = None
    role_ids: list[int] = Field(min_length=1)


class UserUpdate(UserCreate):
    id: int


class PasswordChange(BaseModel):
    old_pass: str
    new_pass: str = Field(min_length=6, max_length=64)


class EmailChange(BaseModel):
    password: str
    email: str = Field(min_length=3, max_length=100)


class AvatarOut(BaseModel):
    avatar: str
