from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from useradmin.models.security import Department


class DeptService:
    """Read access to the department hierarchy (a forest linked through `pid`)."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, dept_id: int) -> Department | None:
        return self.db.get(Department, dept_id)

    def find_by_pid(self, pid: int) -> list[Department]:
        stmt = select(Department).where(Department.pid == pid).order_by(Department.id)
        return list(self.db.scalars(stmt).all())

    def children_ids(self, depts: Iterable[Department]) -> set[int]:
        """
        Ids of the given departments and everything below them.

        Disabled departments are skipped together with their subtree.
        """

        ids: set[int] = set()
        pending = [d for d in depts if d.enabled]
        while pending:
            dept = pending.pop()
            if dept.id in ids:
                continue
            ids.add(dept.id)
            pending.extend(child for child in self.find_by_pid(dept.id) if child.enabled)
        return ids

    def descendant_ids(self, dept_id: int) -> set[int]:
        """Enabled descendants of `dept_id`, excluding `dept_id` itself."""

        return self.children_ids(self.find_by_pid(dept_id))
