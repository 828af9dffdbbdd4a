"""
Department data scoping for user queries.

Two pieces:
- `authorized_dept_ids()` turns the caller's roles into the set of department ids
  they may see (empty set = unrestricted).
- `resolve_dept_scope()` combines that set with the department the query asked
  for and decides what the query is restricted to.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from useradmin.models.security import DATA_SCOPE_ALL, DATA_SCOPE_CUSTOM, DATA_SCOPE_DEPT, Role
from useradmin.services.departments import DeptService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeptScope:
    """
    Outcome of scoping one query.

    `dept_ids` empty means no department restriction. `visible` is False when the
    requested departments and the caller's scope do not overlap at all.
    """

    dept_ids: frozenset[int]
    visible: bool = True


def resolve_dept_scope(
    requested_dept_id: int | None,
    authorized_dept_ids: Iterable[int],
    find_descendants: Callable[[int], Iterable[int]],
) -> DeptScope:
    requested: set[int] = set()
    if requested_dept_id is not None:
        requested.add(requested_dept_id)
        requested.update(find_descendants(requested_dept_id))

    authorized = set(authorized_dept_ids)

    if authorized and requested:
        allowed = requested & authorized
        if not allowed:
            return DeptScope(dept_ids=frozenset(), visible=False)
        return DeptScope(dept_ids=frozenset(allowed))

    if authorized:
        return DeptScope(dept_ids=frozenset(authorized))

    return DeptScope(dept_ids=frozenset(requested))


def authorized_dept_ids(roles: Iterable[Role], user_dept_id: int | None, depts: DeptService) -> set[int]:
    """
    Departments visible to a user holding `roles`.

    ALL on any role short-circuits to the empty set (no restriction). DEPT adds the
    user's own department; CUSTOM adds the role's departments and their subtrees.
    """

    ids: set[int] = set()
    for role in roles:
        if role.data_scope == DATA_SCOPE_ALL:
            return set()
        if role.data_scope == DATA_SCOPE_DEPT:
            if user_dept_id is None:
                logger.warning("Role %s scopes to own department but user has none", role.name)
            else:
                ids.add(user_dept_id)
        elif role.data_scope == DATA_SCOPE_CUSTOM:
            for dept in role.depts:
                ids.add(dept.id)
                ids.update(depts.descendant_ids(dept.id))
        else:
            logger.warning("Unknown data scope %r on role %s; ignoring", role.data_scope, role.name)
    return ids
