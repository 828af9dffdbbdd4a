from __future__ import annotations

import uvicorn

from useradmin.settings import get_settings


def main() -> None:
    """Run the API with uvicorn, using `APP_HOST` / `APP_PORT` / `APP_LOG_LEVEL`."""

    settings = get_settings()
    uvicorn.run(
        "useradmin.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
