from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from useradmin.db.base import Base

# Role data scopes.
DATA_SCOPE_ALL = "ALL"
DATA_SCOPE_DEPT = "DEPT"
DATA_SCOPE_CUSTOM = "CUSTOM"


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Parent department; None for a root of the hierarchy.
    pid: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), nullable=True, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    users: Mapped[list["User"]] = relationship(back_populates="dept")


roles_depts = Table(
    "roles_depts",
    Base.metadata,
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
    Column("dept_id", ForeignKey("departments.id"), primary_key=True),
)

users_roles = Table(
    "users_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lower level = more authority.
    level: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    data_scope: Mapped[str] = mapped_column(String(20), default=DATA_SCOPE_DEPT, nullable=False)

    # Only meaningful for DATA_SCOPE_CUSTOM.
    depts: Mapped[list[Department]] = relationship(secondary=roles_depts)

    users: Mapped[list["User"]] = relationship(
        secondary=users_roles,
        back_populates="roles",
    )


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username"),
        UniqueConstraint("email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    nick_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # bcrypt hash, never the raw password.
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    avatar_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    dept_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), nullable=True, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    pwd_reset_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    dept: Mapped[Department | None] = relationship(back_populates="users")
    roles: Mapped[list[Role]] = relationship(
        secondary=users_roles,
        back_populates="users",
    )


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False)

    # What the code authorizes (e.g. "reset_email") and over which channel/value.
    scenes: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
