"""View model for the converter widget.

Holds the plain state a page needs to render: the rate and date labels, the
two amount inputs, the quick conversion table, the offline advisory and the
error banner. It listens to ``RateService`` events and never talks to the
network or the cache itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import logging
from typing import Callable, List, Optional

from dolarlempira.models.constants import DEFAULT_USD_AMOUNT, LOCAL_SYMBOL
from dolarlempira.services.money import format_amount
from dolarlempira.services.rate_service import LoadState, RateEvent, RateService
from dolarlempira.services.rates.conversion import ConversionEngine, TableRow, parse_amount

logger = logging.getLogger("dolarlempira.ui")

_DAYS = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
_MONTHS = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

LOADING_RATE_TEXT = f"{LOCAL_SYMBOL} ---.--"
LOADING_DATE_TEXT = "cargando..."
OFFLINE_BADGE = "Sin conexión"
CONNECTION_HINT = "Verifica tu conexión a internet e intenta recargar la página."


def _parse_date(raw: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(raw.strip()).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def long_date(raw: str) -> str:
    """``lunes, 1 de enero de 2024``; the raw string when it cannot be parsed."""
    parsed = _parse_date(raw)
    if parsed is None:
        return raw
    return f"{_DAYS[parsed.weekday()]}, {parsed.day} de {_MONTHS[parsed.month - 1]} de {parsed.year}"


def hero_date(today: date) -> str:
    return f"{today.day} de {_MONTHS[today.month - 1]} de {today.year}"


@dataclass(frozen=True)
class Advisory:
    text: str
    title: str
    expires_at: float


class ConverterView:
    def __init__(
        self,
        service: RateService,
        clock: Callable[[], float],
        legacy_swap: bool = False,
    ):
        self._service = service
        self._clock = clock
        self._legacy_swap = legacy_swap
        self.engine = ConversionEngine(lambda: service.current_rate)

        self.rate_text = LOADING_RATE_TEXT
        self.date_text = LOADING_DATE_TEXT
        self.usd_text = ""
        self.local_text = ""
        self.inputs_disabled = False
        self.error_message: Optional[str] = None
        self.table: List[TableRow] = []
        self._advisory: Optional[Advisory] = None

        self._unsubscribe = service.subscribe(self.on_event)

    def close(self) -> None:
        self._unsubscribe()

    # Rate events -------------------------------------------------
    def on_event(self, event: RateEvent) -> None:
        if event.state is LoadState.LOADING:
            self.rate_text = LOADING_RATE_TEXT
            self.date_text = LOADING_DATE_TEXT
        elif event.state in (LoadState.READY, LoadState.DEGRADED):
            self._show_rate(event)
            if event.state is LoadState.DEGRADED:
                self._show_advisory(event)
        elif event.state is LoadState.FAILED:
            self._show_failure(event)

    def _show_rate(self, event: RateEvent) -> None:
        assert event.record is not None
        self.rate_text = f"{LOCAL_SYMBOL} {format_amount(event.record.value, 2)}"
        self.date_text = long_date(event.record.as_of_date)
        self.error_message = None
        self.inputs_disabled = False
        self.table = self.engine.table()
        self.reset_converter()

    def _show_advisory(self, event: RateEvent) -> None:
        if self.active_advisory() is not None:
            return
        self._advisory = Advisory(
            text=OFFLINE_BADGE,
            title=event.message or "",
            expires_at=self._clock() + event.advisory_seconds,
        )

    def _show_failure(self, event: RateEvent) -> None:
        self.rate_text = "Error"
        self.date_text = "No disponible"
        self.error_message = event.message
        self.inputs_disabled = True
        self.table = []
        logger.error("converter disabled", extra={"error": event.error.value if event.error else None})

    def active_advisory(self) -> Optional[Advisory]:
        if self._advisory is not None and self._clock() >= self._advisory.expires_at:
            self._advisory = None
        return self._advisory

    # Inputs ------------------------------------------------------
    def reset_converter(self) -> None:
        if not self.engine.available:
            return
        self.usd_text = str(DEFAULT_USD_AMOUNT)
        self.local_text = format_amount(self.engine.usd_to_local(DEFAULT_USD_AMOUNT), 2)

    def on_usd_input(self, text: str) -> None:
        self.usd_text = text
        if not self.engine.available:
            return
        value = parse_amount(text)
        self.local_text = format_amount(self.engine.usd_to_local(value), 2) if value > 0 else ""

    def on_local_input(self, text: str) -> None:
        self.local_text = text
        if not self.engine.available:
            return
        value = parse_amount(text)
        self.usd_text = format_amount(self.engine.local_to_usd(value), 2) if value > 0 else ""

    def on_swap(self) -> None:
        if self.inputs_disabled or not self.engine.available:
            return
        usd = parse_amount(self.usd_text)
        local = parse_amount(self.local_text)
        if usd <= 0 and local <= 0:
            return
        new_usd, new_local = self.engine.swap(usd, local, legacy=self._legacy_swap)
        self.usd_text = format_amount(new_usd, 2)
        self.local_text = format_amount(new_local, 2)
