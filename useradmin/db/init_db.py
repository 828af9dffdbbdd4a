from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from useradmin.db.base import Base
from useradmin.db.session import SessionLocal, engine
from useradmin.models.security import DATA_SCOPE_ALL, DATA_SCOPE_CUSTOM, DATA_SCOPE_DEPT, Department, Role, User
from useradmin.security.passwords import encode_password
from useradmin.settings import get_settings


def init_db() -> None:
    """
    Create tables + seed a small organisation.

    Seeded accounts all use the configured default password.
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed(db, get_settings().default_password)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Department.id).limit(1)).first() is not None


def seed(db: Session, password: str) -> None:
    # Head Office
    # ├── R&D
    # │   ├── Backend
    # │   └── Frontend
    # └── Finance
    head = Department(name="Head Office")
    db.add(head)
    db.flush()
    rnd = Department(name="R&D", pid=head.id)
    finance = Department(name="Finance", pid=head.id)
    db.add_all([rnd, finance])
    db.flush()
    backend = Department(name="Backend", pid=rnd.id)
    frontend = Department(name="Frontend", pid=rnd.id)
    db.add_all([backend, frontend])
    db.flush()

    admin = Role(name="admin", level=1, data_scope=DATA_SCOPE_ALL, description="Administrator")
    manager = Role(name="manager", level=2, data_scope=DATA_SCOPE_CUSTOM, description="R&D manager")
    manager.depts.append(rnd)
    staff = Role(name="staff", level=3, data_scope=DATA_SCOPE_DEPT, description="Regular staff")
    db.add_all([admin, manager, staff])
    db.flush()

    hashed = encode_password(password)

    u1 = User(username="admin", nick_name="Administrator", email="admin@example.com", dept_id=head.id, password=hashed)
    u1.roles.append(admin)

    u2 = User(username="mia_manager", nick_name="Mia", email="mia@example.com", dept_id=rnd.id, password=hashed)
    u2.roles.append(manager)

    u3 = User(username="ben_backend", nick_name="Ben", email="ben@example.com", dept_id=backend.id, password=hashed)
    u3.roles.append(staff)

    u4 = User(username="fay_frontend", nick_name="Fay", email="fay@example.com", dept_id=frontend.id, password=hashed)
    u4.roles.append(staff)

    u5 = User(username="fred_finance", nick_name="Fred", email="fred@example.com", dept_id=finance.id, password=hashed)
    u5.roles.append(staff)

    db.add_all([u1, u2, u3, u4, u5])
    db.commit()
