from __future__ import annotations

"""Rate sources.

``ProxyRateSource`` is the client side fetcher: it calls our own
``/api/tipo-cambio`` endpoint and turns whatever comes back into a
``FetchResult``. ``BCHIndicatorClient`` is what that endpoint uses to call the
upstream BCH indicator API with the secret key.

Both share ``parse_indicator_payload`` so the proxy and the client agree on
what a valid payload is.
"""
import logging
import math
from typing import Any, Optional

import httpx

from dolarlempira.core.config import Settings, get_settings
from dolarlempira.models.constants import FIELD_DATE, FIELD_VALUE
from dolarlempira.models.rates import RateRecord
from dolarlempira.services.http_client import (
    HttpError,
    HttpPayloadError,
    HttpTimeoutError,
    describe,
    get_json,
)
from .base import FetchError, FetchResult

logger = logging.getLogger("dolarlempira.rates.source")


class PayloadError(ValueError):
    def __init__(self, kind: FetchError, message: str):
        super().__init__(message)
        self.kind = kind


def parse_indicator_payload(data: Any) -> RateRecord:
    """Validate an indicator payload and return its most recent record.

    The payload must be a non-empty list ordered newest first; only element 0
    is read. Raises ``PayloadError`` with ``MALFORMED_PAYLOAD`` for shape
    problems and ``INVALID_VALUE`` for a bad ``Valor``.
    """
    if not isinstance(data, list) or not data:
        raise PayloadError(FetchError.MALFORMED_PAYLOAD, "expected a non-empty list")
    item = data[0]
    if not isinstance(item, dict):
        raise PayloadError(FetchError.MALFORMED_PAYLOAD, "first element is not an object")
    if item.get(FIELD_VALUE) is None or not item.get(FIELD_DATE):
        raise PayloadError(
            FetchError.MALFORMED_PAYLOAD,
            f"missing required fields ({FIELD_VALUE} or {FIELD_DATE})",
        )
    value = item[FIELD_VALUE]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(FetchError.INVALID_VALUE, f"non-numeric {FIELD_VALUE}: {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise PayloadError(FetchError.INVALID_VALUE, f"invalid {FIELD_VALUE}: {value!r}")
    fecha = item[FIELD_DATE]
    if not isinstance(fecha, str):
        raise PayloadError(FetchError.MALFORMED_PAYLOAD, f"{FIELD_DATE} is not a string")
    return RateRecord(value=float(value), as_of_date=fecha)


class ProxyRateSource:
    """Fetch the current rate from the proxy endpoint.

    Never raises for expected failures; the outcome is always a FetchResult.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings() if url is None or timeout is None else None
        self._url = url or settings.proxy_url  # type: ignore[union-attr]
        self._timeout = timeout or settings.fetch_timeout_seconds  # type: ignore[union-attr]
        self._transport = transport

    async def fetch(self) -> FetchResult:
        try:
            data = await get_json(self._url, timeout=self._timeout, transport=self._transport)
        except HttpTimeoutError as e:
            logger.error("rate fetch timed out", extra=describe(e))
            return FetchResult.failure(FetchError.TIMEOUT, str(e))
        except HttpPayloadError as e:
            logger.error("rate payload is not JSON", extra=describe(e))
            return FetchResult.failure(FetchError.MALFORMED_PAYLOAD, str(e))
        except HttpError as e:
            logger.error("rate fetch failed", extra=describe(e))
            return FetchResult.failure(FetchError.NETWORK_FAILURE, str(e))
        try:
            record = parse_indicator_payload(data)
        except PayloadError as e:
            logger.error("rate payload rejected", extra={"kind": e.kind.value, "error": str(e)})
            return FetchResult.failure(e.kind, str(e))
        logger.info(
            "rate fetched", extra={"valor": record.value, "fecha": record.as_of_date}
        )
        return FetchResult.success(record)


class MissingApiKeyError(RuntimeError):
    pass


class BCHIndicatorClient:
    """Upstream BCH indicator API client used by the proxy endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport

    async def fetch_latest(self) -> list:
        """Return the validated upstream list, newest record first.

        Raises ``MissingApiKeyError``, ``HttpError`` subclasses or ``PayloadError``.
        """
        s = self._settings
        if not s.bch_api_key:
            raise MissingApiKeyError("BCH_API_KEY is not configured")
        data = await get_json(
            str(s.bch_api_url),
            params={"reciente": "1", "formato": "json", "ordenamiento": "desc"},
            headers={
                "Ocp-Apim-Subscription-Key": s.bch_api_key,
                "Content-Type": "application/json",
                "User-Agent": s.user_agent,
            },
            timeout=s.upstream_timeout_seconds,
            transport=self._transport,
        )
        record = parse_indicator_payload(data)
        logger.debug(
            "upstream rate obtained", extra={"valor": record.value, "fecha": record.as_of_date}
        )
        return data
