from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from useradmin.db.init_db import init_db
from useradmin.errors import BadRequestError, bad_request_handler
from useradmin.logging_config import configure_app_logging
from useradmin.routers import health, users
from useradmin.security.config import load_security_config
from useradmin.security.dependencies import enforce_security
from useradmin.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: authentication + permission checks for every route.
    app = FastAPI(dependencies=[Depends(enforce_security)], lifespan=lifespan)
    app.add_exception_handler(BadRequestError, bad_request_handler)

    app.include_router(health.router)
    app.include_router(users.router)

    return app


app = create_app()
