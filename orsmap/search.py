"""Debounced, cancellable place-search session with keyboard selection.

Every issued query gets a generation number. Responses are applied only if
their generation is still the latest one, so a slow response can never
overwrite a newer result list.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .geocoder import GeocodeResult

DEBOUNCE_SECONDS = 0.3

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[List[GeocodeResult]]]


class SessionState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"


class SearchSession:
    """State of one search box interaction.

    Must be driven from inside a running asyncio event loop.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        debounce: float = DEBOUNCE_SECONDS,
        on_select: Optional[Callable[[GeocodeResult], None]] = None,
    ) -> None:
        self._fetch = fetch
        self.debounce = debounce
        self.on_select = on_select

        self.query = ""
        self.results: List[GeocodeResult] = []
        self.highlight_index = -1
        self.state = SessionState.IDLE
        self.generation = 0

        self._last_issued: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def highlighted(self) -> Optional[GeocodeResult]:
        if 0 <= self.highlight_index < len(self.results):
            return self.results[self.highlight_index]
        return None

    def on_input(self, text: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self.query = text or ""
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce, self._on_timer)

    def key(self, name: str) -> Optional[GeocodeResult]:
        """Handle a navigation key. Returns the selected result on Enter."""
        if not self.results:
            return None

        count = len(self.results)
        if name == "ArrowDown":
            self.highlight_index = (self.highlight_index + 1) % count
        elif name == "ArrowUp":
            self.highlight_index = (self.highlight_index - 1 + count) % count
        elif name == "Enter":
            if self.highlight_index >= 0:
                return self.select(self.results[self.highlight_index])
        elif name == "Escape":
            self.clear()
        return None

    def submit(self) -> Optional[GeocodeResult]:
        """Select the highlighted result, or run the current query right away."""
        highlighted = self.highlighted
        if highlighted is not None:
            return self.select(highlighted)
        self._cancel_timer()
        self._issue(self.query.strip())
        return None

    def select(self, result: GeocodeResult) -> GeocodeResult:
        if self.on_select is not None:
            self.on_select(result)
        self.clear()
        return result

    def dismiss(self) -> None:
        """Close the result list after an interaction outside the search box."""
        self.clear()

    def clear(self) -> None:
        self._cancel_timer()
        # Invalidate whatever is still in flight.
        self.generation += 1
        self._last_issued = None
        self.results = []
        self.highlight_index = -1
        self.state = SessionState.IDLE

    async def wait_settled(self) -> None:
        """Wait for the pending debounce timer and the in-flight request."""
        loop = asyncio.get_running_loop()
        while self._timer is not None:
            await asyncio.sleep(max(0.0, self._timer.when() - loop.time()))
        task = self._task
        if task is not None and not task.done():
            await task

    async def aclose(self) -> None:
        self._cancel_timer()
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        query = self.query.strip()
        if query == self._last_issued and self.state is not SessionState.IDLE:
            logger.debug("Query %r unchanged, not re-issuing", query)
            return
        self._issue(query)

    def _issue(self, query: str) -> None:
        self.generation += 1
        generation = self.generation
        self._last_issued = query
        if not query:
            self._settle([])
            return

        self.state = SessionState.PENDING
        self._task = asyncio.get_running_loop().create_task(self._run(generation, query))

    async def _run(self, generation: int, query: str) -> None:
        try:
            results = list(await self._fetch(query))
        except Exception as exc:  # pylint: disable=broad-except
            # Search is advisory: any failure just means no suggestions.
            logger.warning("Place search failed for %r: %s", query, exc)
            results = []

        if generation != self.generation:
            logger.debug("Discarding stale results for %r (generation %s < %s)", query, generation, self.generation)
            return
        self._settle(results)

    def _settle(self, results: List[GeocodeResult]) -> None:
        self.results = results
        self.highlight_index = 0 if results else -1
        self.state = SessionState.SETTLED
