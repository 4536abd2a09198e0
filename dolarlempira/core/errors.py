from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging

from dolarlempira.core.config import get_settings

logger = logging.getLogger("dolarlempira.errors")


def is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return settings.is_production


def error_body(
    status_code: int,
    message: str,
    details: Optional[Any] = None,
    production: bool = False,
) -> Dict[str, Any]:
    """Structured error payload shared by the proxy and the app-level handlers.

    ``details`` is dropped in production so upstream messages never leak.
    """
    body: Dict[str, Any] = {
        "error": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
    }
    if details is not None and not production:
        body["details"] = details
    return body


def error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, message, details, is_production(request)),
        headers=headers,
    )


def http_error_handler(request: Request, exc):  # type: ignore
    code = getattr(exc, "status_code", status.HTTP_404_NOT_FOUND)
    if code == status.HTTP_404_NOT_FOUND:
        return error_response(
            request, code, "Not found", f"No route for {request.method} {request.url.path}"
        )
    return error_response(request, code, str(getattr(exc, "detail", "HTTP error")))


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        jsonable_encoder(exc.errors()),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred.",
        str(exc),
    )
