from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level of the `useradmin.*` logger tree.

    Notes:
    - Plain stdlib logging; uvicorn installs the handlers.
    - `APP_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) controls verbosity, including
      the audit lines written by the user-management routes.
    """

    normalized = level.upper()
    logging.getLogger("useradmin").setLevel(normalized)
    logging.getLogger("useradmin").propagate = True
