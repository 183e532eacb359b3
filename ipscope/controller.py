"""Lookup orchestration: the single path from a trigger to the view and history."""

from __future__ import annotations

import logging
from typing import Protocol

from .errors import ErrorKind, IPLookupError
from .history import HistoryStore
from .models import HistoryEntry, LookupResult, LookupState
from .service import LookupService
from .validator import parse

logger = logging.getLogger(__name__)


class ViewSink(Protocol):
    """Presentation capability the controller writes to."""

    def show_loading(self) -> None: ...

    def present(self, result: LookupResult) -> None: ...

    def present_error(self, error: IPLookupError) -> None: ...

    def render_history(self, entries: list[HistoryEntry]) -> None: ...


class LookupController:
    """Single entry point for every lookup trigger.

    Each call to :meth:`lookup` is stamped with a generation number. When
    calls overlap, only the most recently issued one may touch the view or
    the history; older ones still run to completion and are then dropped.
    """

    def __init__(self, service: LookupService, history: HistoryStore, sink: ViewSink):
        self.service = service
        self.history = history
        self.sink = sink
        self.state = LookupState.IDLE
        self.generation = 0
        self.last_result: LookupResult | None = None
        self.last_error: IPLookupError | None = None

    async def lookup(self, target: str = "") -> LookupResult | None:
        """Look up *target* (empty for the caller's own address).

        Returns the presented result, or None when the lookup failed or was
        superseded by a newer one.
        """
        self.generation += 1
        generation = self.generation
        self.state = LookupState.LOADING
        self.sink.show_loading()
        logger.info("Looking up %s", target or "own address")

        try:
            raw = await self.service.fetch(target)
            result = parse(raw)
        except IPLookupError as exc:
            if generation != self.generation:
                logger.debug("Dropping stale failure for %r", target)
                return None
            self._fail(exc)
            return None

        if generation != self.generation:
            logger.debug("Dropping stale result for %r", target)
            return None

        self.state = LookupState.PRESENTED
        self.last_result = result
        self.last_error = None
        self.sink.present(result)
        self.history.record(result.ip, result.location_label)
        return result

    def _fail(self, exc: IPLookupError) -> None:
        if exc.kind is ErrorKind.MALFORMED_RESPONSE:
            logger.warning("Malformed lookup response: %s", exc.reason)
        else:
            logger.info("Lookup failed (%s): %s", exc.kind.value, exc.reason)
        self.state = LookupState.FAILED
        self.last_error = exc
        self.sink.present_error(exc)

    async def rerun(self, index: int) -> LookupResult | None:
        """Look up the history entry at *index* (0 = most recent) again."""
        entries = self.history.list()
        if not 0 <= index < len(entries):
            raise IndexError(f"no history entry at position {index + 1}")
        return await self.lookup(entries[index].ip)

    def show_history(self) -> None:
        self.sink.render_history(self.history.list())

    def clear_history(self) -> None:
        self.history.clear()
        self.sink.render_history([])
