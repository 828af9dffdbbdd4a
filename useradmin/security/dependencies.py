from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from useradmin.db.session import get_db
from useradmin.security.auth import extract_user_id, load_user
from useradmin.security.config import SecurityConfig
from useradmin.security.context import AuthzContext

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    Runs after routing, so a route's `require_permissions` metadata is merged with
    the YAML rule matched for (path, method). On success the acting user and an
    `AuthzContext` are stored on `request.state`.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_permissions = set(getattr(endpoint, "__security_required_permissions__", set())) if endpoint else set()

    if not (rule.auth_required or decorator_permissions):
        return

    user_id = extract_user_id(request, config)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user id")

    user = load_user(db, user_id)
    request.state.user = user

    user_roles = {r.name for r in user.roles}
    user_permissions = config.permissions_for_roles(user_roles)

    required = set(rule.required_permissions) | decorator_permissions
    missing = required - user_permissions
    if missing:
        logger.warning("Permission denied user=%s path=%s method=%s missing=%s", user.username, path, method, sorted(missing))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing permission: {sorted(missing)}",
        )

    request.state.authz = AuthzContext(
        user_id=user.id,
        username=user.username,
        dept_id=user.dept_id,
        roles=frozenset(user_roles),
        permissions=frozenset(user_permissions),
    )


def get_authz(request: Request) -> AuthzContext:
    authz = getattr(request.state, "authz", None)
    if authz is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return authz
