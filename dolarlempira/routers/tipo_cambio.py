from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from starlette import status
import logging

from dolarlempira.core.errors import error_response
from dolarlempira.services.http_client import HttpConnectionError, HttpTimeoutError
from dolarlempira.services.rates.providers import BCHIndicatorClient

"""Exchange rate proxy (GET /api/tipo-cambio).

Shields the BCH API key: the browser calls this endpoint, which calls the
upstream indicator API, validates the newest record and returns the upstream
list unchanged. Responses are CDN cacheable for an hour.
"""

logger = logging.getLogger("dolarlempira.proxy")

router = APIRouter(prefix="/api", tags=["tipo-cambio"])

PROXY_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Cache-Control": "s-maxage=3600, stale-while-revalidate",
}

GENERIC_ERROR = "Error al obtener tipo de cambio del BCH"
TIMEOUT_ERROR = "Timeout: BCH API no respondió a tiempo"
CONNECT_ERROR = "No se pudo conectar con el BCH"


def get_indicator_client(request: Request) -> BCHIndicatorClient:
    return BCHIndicatorClient(request.app.state.settings)


@router.get("/tipo-cambio", summary="Latest USD/HNL rate from BCH")
async def get_tipo_cambio(
    request: Request, client: BCHIndicatorClient = Depends(get_indicator_client)
):
    try:
        data = await client.fetch_latest()
    except Exception as exc:
        logger.error(
            "error in /api/tipo-cambio",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )
        code, message = status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR
        if isinstance(exc, HttpTimeoutError):
            code, message = status.HTTP_504_GATEWAY_TIMEOUT, TIMEOUT_ERROR
        elif isinstance(exc, HttpConnectionError):
            code, message = status.HTTP_503_SERVICE_UNAVAILABLE, CONNECT_ERROR
        return error_response(request, code, message, str(exc), headers=PROXY_HEADERS)
    return JSONResponse(content=data, headers=PROXY_HEADERS)


@router.options("/tipo-cambio", include_in_schema=False)
async def preflight_tipo_cambio():
    return Response(status_code=status.HTTP_200_OK, headers=PROXY_HEADERS)


@router.api_route(
    "/tipo-cambio",
    methods=["POST", "PUT", "PATCH", "DELETE", "HEAD", "TRACE"],
    include_in_schema=False,
)
async def method_not_allowed():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method not allowed", "allowedMethods": ["GET"]},
        headers={**PROXY_HEADERS, "Allow": "GET, OPTIONS"},
    )
