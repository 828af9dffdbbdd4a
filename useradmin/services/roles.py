from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from useradmin.models.security import Role, users_roles
from useradmin.security.levels import min_level


class RoleService:
    def __init__(self, db: Session):
        self.db = db

    def find_by_users_id(self, user_id: int) -> list[Role]:
        stmt = (
            select(Role)
            .join(users_roles, users_roles.c.role_id == Role.id)
            .where(users_roles.c.user_id == user_id)
            .options(selectinload(Role.depts))
            .order_by(Role.level, Role.id)
        )
        return list(self.db.scalars(stmt).all())

    def find_by_ids(self, role_ids: Iterable[int]) -> list[Role]:
        ids = set(role_ids)
        if not ids:
            return []
        return list(self.db.scalars(select(Role).where(Role.id.in_(sorted(ids))).order_by(Role.id)).all())

    def user_level(self, user_id: int) -> int | None:
        """Effective level of a user: the minimum level over their roles."""

        return min_level(r.level for r in self.find_by_users_id(user_id))

    def level_of_roles(self, role_ids: Iterable[int]) -> int | None:
        return min_level(r.level for r in self.find_by_ids(role_ids))
