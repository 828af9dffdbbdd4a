from __future__ import annotations

from collections.abc import Callable


def require_permissions(permissions: list[str]) -> Callable:
    """
    Declare the permissions a route needs, next to the route itself.

    Implementation detail:
    - This decorator does NOT perform auth itself.
    - It attaches metadata that the global security dependency reads
      *after* routing (during dependency resolution), merged with any
      `required_permissions` from the YAML config.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_required_permissions__", set()))
        setattr(fn, "__security_required_permissions__", existing | set(permissions))
        return fn

    return decorator
