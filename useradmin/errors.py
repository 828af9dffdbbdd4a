from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class BadRequestError(Exception):
    """Rejected request (failed precondition, insufficient privilege). Surfaces as HTTP 400."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


async def bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})
