"""
Role-level comparison used before user mutations.

A role level is an integer rank where a lower number means more authority.
A user's effective level is the minimum over their roles; a user without roles
has no level and ranks below everyone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from useradmin.errors import BadRequestError

logger = logging.getLogger(__name__)


def min_level(levels: Iterable[int]) -> int | None:
    values = list(levels)
    return min(values) if values else None


def ensure_level(actor_level: int | None, target_level: int | None) -> None:
    """
    Raise BadRequestError when the actor is weaker than the target.

    `None` stands for "no roles": a role-less actor fails against any target that
    has a level, and anyone may act on a role-less target.
    """

    if target_level is None:
        return
    if actor_level is None or actor_level > target_level:
        logger.warning("Insufficient role level actor_level=%s target_level=%s", actor_level, target_level)
        raise BadRequestError("Insufficient role privilege")
