from datetime import date

import pytest

from conftest import HOUR_MS, FakeClock, fail, ok

from dolarlempira.models.rates import RateRecord
from dolarlempira.services.converter_view import (
    LOADING_DATE_TEXT,
    LOADING_RATE_TEXT,
    OFFLINE_BADGE,
    ConverterView,
    hero_date,
    long_date,
)
from dolarlempira.services.rate_service import ADVISORY_MESSAGE, LoadState, RateEvent


@pytest.fixture
def ui_clock():
    return FakeClock(now=0.0)


def test_long_date_formats():
    assert long_date("2024-01-01") == "lunes, 1 de enero de 2024"
    assert long_date("2024-01-02T00:00:00") == "martes, 2 de enero de 2024"
    assert long_date("ayer") == "ayer"
    assert hero_date(date(2026, 10, 19)) == "19 de octubre de 2026"


def test_loading_placeholders(make_service, ui_clock):
    view = ConverterView(make_service(ok()), clock=ui_clock)
    view.on_event(RateEvent(LoadState.LOADING))
    assert view.rate_text == LOADING_RATE_TEXT
    assert view.date_text == LOADING_DATE_TEXT


@pytest.mark.anyio
async def test_ready_renders_rate_table_and_default_amount(make_service, ui_clock):
    svc = make_service(ok(24.70, "2024-01-01"))
    view = ConverterView(svc, clock=ui_clock)

    await svc.load()

    assert view.rate_text == "L 24.70"
    assert view.date_text == "lunes, 1 de enero de 2024"
    assert view.usd_text == "100"
    assert view.local_text == "2,470.00"
    assert len(view.table) == 10
    assert [(r.usd_text, r.local_text) for r in view.table if r.usd == 100] == [("100", "2,470.00")]
    assert not view.inputs_disabled
    assert view.active_advisory() is None


@pytest.mark.anyio
async def test_inputs_convert_both_ways(make_service, ui_clock):
    svc = make_service(ok(24.70))
    view = ConverterView(svc, clock=ui_clock)
    await svc.load()

    view.on_usd_input("1,000")
    assert view.local_text == "24,700.00"

    view.on_local_input("247")
    assert view.usd_text == "10.00"

    view.on_usd_input("abc")
    assert view.local_text == ""

    view.on_local_input("0")
    assert view.usd_text == ""


@pytest.mark.anyio
async def test_swap_true_and_legacy(make_service, ui_clock):
    svc = make_service(ok(24.70))
    view = ConverterView(svc, clock=ui_clock)
    await svc.load()
    view.usd_text, view.local_text = "10", "500"

    view.on_swap()
    assert (view.usd_text, view.local_text) == ("20.24", "247.00")

    legacy = ConverterView(svc, clock=ui_clock, legacy_swap=True)
    legacy.usd_text, legacy.local_text = "100", "2,470.00"
    legacy.on_swap()
    assert (legacy.usd_text, legacy.local_text) == ("2,470.00", "61,009.00")


@pytest.mark.anyio
async def test_degraded_shows_transient_advisory(make_service, cache, clock, ui_clock):
    cache.set(RateRecord(value=24.2, as_of_date="2023-12-29"))
    clock.advance(HOUR_MS * 2)
    svc = make_service(fail())
    view = ConverterView(svc, clock=ui_clock)

    await svc.load()

    assert view.rate_text == "L 24.20"
    advisory = view.active_advisory()
    assert advisory is not None
    assert advisory.text == OFFLINE_BADGE
    assert advisory.title == ADVISORY_MESSAGE

    ui_clock.advance(4.9)
    assert view.active_advisory() is not None
    ui_clock.advance(0.1)
    assert view.active_advisory() is None


@pytest.mark.anyio
async def test_failed_disables_inputs(make_service, ui_clock):
    svc = make_service(fail())
    view = ConverterView(svc, clock=ui_clock)

    await svc.load()

    assert view.rate_text == "Error"
    assert view.date_text == "No disponible"
    assert view.inputs_disabled
    assert view.error_message
    assert view.table == []

    view.on_usd_input("100")
    assert view.local_text == ""
    view.on_swap()
    assert view.local_text == ""


@pytest.mark.anyio
async def test_close_stops_updates(make_service, ui_clock):
    svc = make_service(ok(24.70))
    view = ConverterView(svc, clock=ui_clock)
    view.close()
    await svc.load()
    assert view.rate_text == LOADING_RATE_TEXT


@pytest.mark.anyio
async def test_huge_input_still_formats(make_service, ui_clock):
    svc = make_service(ok(24.70))
    view = ConverterView(svc, clock=ui_clock)
    await svc.load()

    view.on_usd_input("1" + "0" * 27)

    assert view.local_text.startswith("24,")
    assert len(view.local_text.replace(",", "")) == len("2" * 29 + ".00")
    assert view.local_text.endswith(".00")
