from __future__ import annotations

import csv
import io
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, selectinload

from useradmin.errors import BadRequestError
from useradmin.models.security import Department, Role, User
from useradmin.schemas.security import UserCreate, UserOut, UserPage, UserUpdate
from useradmin.security.passwords import encode_password, password_matches
from useradmin.services.roles import RoleService
from useradmin.settings import Settings

logger = logging.getLogger(__name__)

AVATAR_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"})

_SORTABLE = {
    "id": User.id,
    "username": User.username,
    "email": User.email,
    "enabled": User.enabled,
    "dept_id": User.dept_id,
    "created_at": User.created_at,
}


@dataclass
class UserQueryCriteria:
    id: int | None = None
    blurry: str | None = None
    enabled: bool | None = None
    dept_id: int | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    # Filled in by data scoping; empty = no department restriction.
    dept_ids: set[int] = field(default_factory=set)


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort: str = "id,desc"


class UserService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.roles = RoleService(db)

    # ---- queries ---------------------------------------------------------------------

    def query_page(self, criteria: UserQueryCriteria, pageable: PageRequest) -> UserPage:
        base = self._filtered(select(User), criteria)
        total = self.db.scalar(select(func.count()).select_from(base.subquery())) or 0

        stmt = (
            base.options(selectinload(User.dept), selectinload(User.roles))
            .order_by(_order_by(pageable.sort))
            .offset(pageable.page * pageable.size)
            .limit(pageable.size)
        )
        users = self.db.scalars(stmt).all()
        return UserPage(content=[UserOut.model_validate(u) for u in users], total_elements=total)

    def query_all(self, criteria: UserQueryCriteria) -> list[User]:
        stmt = (
            self._filtered(select(User), criteria)
            .options(selectinload(User.dept), selectinload(User.roles))
            .order_by(User.id)
        )
        return list(self.db.scalars(stmt).all())

    def find_by_id(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise BadRequestError(f"User {user_id} does not exist")
        return user

    def find_by_name(self, username: str) -> User:
        user = self.db.scalars(select(User).where(User.username == username)).first()
        if user is None:
            raise BadRequestError(f"User {username!r} does not exist")
        return user

    def _filtered(self, stmt: Select, criteria: UserQueryCriteria) -> Select:
        if criteria.id is not None:
            stmt = stmt.where(User.id == criteria.id)
        if criteria.blurry:
            pattern = f"%{criteria.blurry}%"
            stmt = stmt.where(or_(User.username.like(pattern), User.nick_name.like(pattern), User.email.like(pattern)))
        if criteria.enabled is not None:
            stmt = stmt.where(User.enabled.is_(criteria.enabled))
        if criteria.dept_ids:
            stmt = stmt.where(User.dept_id.in_(sorted(criteria.dept_ids)))
        if criteria.created_from is not None:
            stmt = stmt.where(User.created_at >= criteria.created_from)
        if criteria.created_to is not None:
            stmt = stmt.where(User.created_at <= criteria.created_to)
        return stmt

    # ---- mutations -------------------------------------------------------------------

    def create(self, resources: UserCreate) -> User:
        self._ensure_unique(resources.username, resources.email)
        self._ensure_dept(resources.dept_id)

        user = User(
            username=resources.username,
            nick_name=resources.nick_name,
            email=resources.email,
            phone=resources.phone,
            gender=resources.gender,
            enabled=resources.enabled,
            dept_id=resources.dept_id,
            password=encode_password(self.settings.default_password),
        )
        user.roles = self._resolve_roles(resources.role_ids)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, resources: UserUpdate) -> User:
        user = self.find_by_id(resources.id)
        self._ensure_unique(resources.username, resources.email, exclude_id=user.id)
        self._ensure_dept(resources.dept_id)

        user.username = resources.username
        user.nick_name = resources.nick_name
        user.email = resources.email
        user.phone = resources.phone
        user.gender = resources.gender
        user.enabled = resources.enabled
        user.dept_id = resources.dept_id
        user.roles = self._resolve_roles(resources.role_ids)
        self.db.commit()
        return user

    def delete(self, user_id: int) -> None:
        user = self.find_by_id(user_id)
        self.db.delete(user)
        self.db.commit()

    def update_pass(self, username: str, old_pass: str, new_pass: str) -> None:
        user = self.find_by_name(username)
        if not password_matches(old_pass, user.password):
            raise BadRequestError("Update failed: old password is wrong")
        if password_matches(new_pass, user.password):
            raise BadRequestError("New password must differ from the old one")

        user.password = encode_password(new_pass)
        user.pwd_reset_time = datetime.utcnow()
        self.db.commit()

    def ensure_email_available(self, email: str, exclude_id: int | None = None) -> None:
        self._ensure_unique(None, email, exclude_id=exclude_id)

    def update_email(self, username: str, email: str) -> None:
        user = self.find_by_name(username)
        self.ensure_email_available(email, exclude_id=user.id)
        user.email = email
        self.db.commit()

    def update_avatar(self, username: str, filename: str, upload: BinaryIO) -> str:
        """
        Store an uploaded avatar image and return its new file name.

        At most one byte past the size limit is read from `upload`.
        """

        user = self.find_by_name(username)

        ext = Path(filename or "").suffix.lower()
        if ext not in AVATAR_EXTENSIONS:
            raise BadRequestError(f"Unsupported avatar type {ext or '<none>'}")
        limit = self.settings.avatar_max_size_bytes
        content = upload.read(limit + 1)
        if len(content) > limit:
            raise BadRequestError(f"Avatar exceeds {self.settings.avatar_max_size_mb} MB")

        avatar_dir = self.settings.resolved_avatar_dir()
        avatar_dir.mkdir(parents=True, exist_ok=True)
        stored = avatar_dir / f"{Path(filename).stem}-{uuid.uuid4().hex[:12]}{ext}"
        stored.write_bytes(content)

        old_path = user.avatar_path
        user.avatar_name = stored.name
        user.avatar_path = str(stored)
        try:
            self.db.commit()
        except Exception:
            stored.unlink(missing_ok=True)
            raise

        if old_path:
            Path(old_path).unlink(missing_ok=True)
            logger.debug("Removed previous avatar %s", old_path)
        return stored.name

    def _resolve_roles(self, role_ids: list[int]) -> list[Role]:
        roles = self.roles.find_by_ids(role_ids)
        missing = set(role_ids) - {r.id for r in roles}
        if missing:
            raise BadRequestError(f"Unknown role ids: {sorted(missing)}")
        return roles

    def _ensure_dept(self, dept_id: int | None) -> None:
        if dept_id is not None and self.db.get(Department, dept_id) is None:
            raise BadRequestError(f"Department {dept_id} does not exist")

    def _ensure_unique(self, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
        for column, value in ((User.username, username), (User.email, email)):
            if value is None:
                continue
            stmt = select(User.id).where(column == value)
            if exclude_id is not None:
                stmt = stmt.where(User.id != exclude_id)
            if self.db.execute(stmt.limit(1)).first() is not None:
                raise BadRequestError(f"User with {column.key} {value!r} already exists")

    # ---- export ----------------------------------------------------------------------

    def export_csv(self, users: list[User]) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(
            ["username", "nick_name", "roles", "department", "email", "phone", "enabled", "pwd_reset_time", "created_at"]
        )
        for u in users:
            writer.writerow(
                [
                    u.username,
                    u.nick_name or "",
                    ",".join(r.name for r in u.roles),
                    u.dept.name if u.dept else "",
                    u.email,
                    u.phone or "",
                    "enabled" if u.enabled else "disabled",
                    u.pwd_reset_time.isoformat() if u.pwd_reset_time else "",
                    u.created_at.isoformat(),
                ]
            )
        return output.getvalue()


def _order_by(sort: str):
    name, _, direction = sort.partition(",")
    column = _SORTABLE.get(name.strip())
    if column is None:
        raise BadRequestError(f"Cannot sort by {name.strip()!r}")
    direction = direction.strip().lower() or "asc"
    if direction not in ("asc", "desc"):
        raise BadRequestError(f"Invalid sort direction {direction!r}")
    return column.desc() if direction == "desc" else column.asc()
