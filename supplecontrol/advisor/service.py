"""Inventory analysis through the advisor backend."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable

from ..models import AnalysisResult, Product
from . import AdvisorBackend, AdvisorNotConfiguredError
from .request import (
    MAX_ADVISORY_ITEMS,
    all_clear_result,
    build_payload,
    build_prompt,
    fallback_result,
    not_configured_result,
    parse_response,
    select_at_risk,
)

logger = logging.getLogger(__name__)


async def analyze_inventory(
    products: Iterable[Product],
    backend: AdvisorBackend | None,
    today: date | None = None,
    max_items: int = MAX_ADVISORY_ITEMS,
) -> AnalysisResult:
    """Ask the advisor for tactical suggestions on at-risk stock.

    Makes at most one backend call and never raises: a missing API key,
    an inventory with nothing at risk, and any call or parse failure each
    map to a fixed result.
    """
    if backend is None or not backend.configured:
        logger.warning("Advisor API key is missing; analysis skipped")
        return not_configured_result()

    try:
        at_risk = select_at_risk(products, today)
        if not at_risk:
            logger.info("No expired or expiring products; returning all-clear result")
            return all_clear_result()

        payload = build_payload(at_risk, max_items=max_items)
        logger.info(
            "Requesting advice for %d of %d at-risk products", len(payload), len(at_risk)
        )
        text = await backend.generate(build_prompt(payload))
        return parse_response(text)
    except AdvisorNotConfiguredError:
        logger.warning("Advisor API key is missing; analysis skipped")
        return not_configured_result()
    except Exception:
        logger.exception("Inventory analysis failed")
        return fallback_result()


class InventoryAdvisor:
    """Runs ``analyze_inventory`` with at most one request in flight.

    A call made while a request is pending for the same products and
    date joins that request. A call with different input waits for the
    pending request to finish and then issues its own.
    """

    def __init__(
        self, backend: AdvisorBackend | None, max_items: int = MAX_ADVISORY_ITEMS
    ) -> None:
        self._backend = backend
        self._max_items = max_items
        self._pending: asyncio.Task[AnalysisResult] | None = None
        self._pending_input: tuple[list[Product], date | None] | None = None

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def analyze(
        self, products: Iterable[Product], today: date | None = None
    ) -> AnalysisResult:
        request = (list(products), today)
        while self.busy:
            if request == self._pending_input:
                logger.info("Analysis already in progress; waiting for it")
                return await asyncio.shield(self._pending)
            logger.info("Another analysis is in progress; queuing this one")
            await asyncio.wait({self._pending})

        self._pending_input = request
        self._pending = asyncio.ensure_future(
            analyze_inventory(
                request[0],
                self._backend,
                today=today,
                max_items=self._max_items,
            )
        )
        return await asyncio.shield(self._pending)
