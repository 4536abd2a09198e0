"""Smoke script for the client side rate loading cycle.

Demonstrates:
 1. First load hits the proxy (or falls back / fails if it is unreachable).
 2. Second load is served from the persisted cache.
 3. The converter view reflects the resulting state.

NOTE: This is a lightweight diagnostic and not a formal test. Start the proxy
first (uvicorn --factory dolarlempira.main:create_app) or set PROXY_URL.
"""

import asyncio
import os
import sys
import time
from pprint import pprint

from dolarlempira.core.config import get_settings
from dolarlempira.core.logging import init_logging
from dolarlempira.services.converter_view import ConverterView
from dolarlempira.services.rate_service import build_rate_service


async def run():
    settings = get_settings()
    init_logging(debug=settings.debug)
    svc = build_rate_service(settings)
    view = ConverterView(svc, clock=time.monotonic)
    out = {}

    out["first"] = {"state": (await svc.load()).value, "origin": svc.origin, "rate": svc.current_rate}
    out["second"] = {"state": (await svc.load()).value, "origin": svc.origin, "rate": svc.current_rate}
    out["view"] = {
        "rate": view.rate_text,
        "date": view.date_text,
        "usd": view.usd_text,
        "local": view.local_text,
        "table": [(row.usd_text, row.local_text) for row in view.table],
        "disabled": view.inputs_disabled,
    }
    pprint(out)


if __name__ == "__main__":
    sys.path.append(os.getcwd())
    asyncio.run(run())
