from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context, attached to `request.state.authz`.

    Department visibility is not precomputed here: it depends on the role data
    scopes and is resolved by `useradmin.services.data_scope` when a query needs it.
    """

    user_id: int
    username: str
    dept_id: int | None
    roles: frozenset[str]
    permissions: frozenset[str]
