from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from useradmin.errors import BadRequestError
from useradmin.models.security import VerificationCode

logger = logging.getLogger(__name__)

SCENE_RESET_EMAIL = "reset_email"
TYPE_EMAIL = "email"


class VerificationCodeService:
    """
    Checks codes that were issued (and delivered) elsewhere.

    A code is usable once: validation marks it inactive.
    """

    def __init__(self, db: Session, ttl_minutes: int):
        self.db = db
        self.ttl = timedelta(minutes=ttl_minutes)

    def validate(self, code: str, scenes: str, type_: str, value: str) -> None:
        stmt = (
            select(VerificationCode)
            .where(
                VerificationCode.code == code,
                VerificationCode.scenes == scenes,
                VerificationCode.type == type_,
                VerificationCode.value == value,
                VerificationCode.active.is_(True),
            )
            .order_by(VerificationCode.created_at.desc())
        )
        found = self.db.scalars(stmt).first()
        if found is None:
            logger.warning("Verification code rejected scenes=%s value=%s", scenes, value)
            raise BadRequestError("Invalid verification code")

        if found.created_at + self.ttl < datetime.utcnow():
            found.active = False
            self.db.commit()
            raise BadRequestError("Verification code expired")

        found.active = False
        self.db.commit()
