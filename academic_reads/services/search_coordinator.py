"""Incremental search over the catalog.

Keystrokes arrive through :meth:`SearchCoordinator.on_input`. Only the text
left standing after a quiet period is queried. Every query gets a request id
from a monotonically increasing counter, and a response is displayed only if
its id is still the newest one issued, so a slow reply to an old query can
never overwrite the results of a newer one.

States::

    Idle  --query-->  Pending(query, request_id)  --latest reply-->  Settled(query, results)

Everything runs on one asyncio loop; the id check and the state update happen
without an ``await`` in between.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from academic_reads.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    query: str
    request_id: int


@dataclass(frozen=True)
class Settled:
    query: str
    results: Sequence[Any] = field(default_factory=tuple)


SearchState = Union[Idle, Pending, Settled]


class SearchCoordinator:
    """Debounced, race-free search state machine.

    Constructor args:
        search:            ``async (query) -> results`` for non-empty queries.
        list_all:          ``async () -> results``, used when the query is blank.
        debounce_seconds:  quiet period before a query is sent
                           (default ``settings.search_debounce_seconds``).
        on_update:         called with the new :class:`Settled` state whenever
                           the displayed results change.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[Sequence[Any]]],
        list_all: Callable[[], Awaitable[Sequence[Any]]],
        debounce_seconds: Optional[float] = None,
        on_update: Optional[Callable[[Settled], None]] = None,
    ):
        self._search = search
        self._list_all = list_all
        self.debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._on_update = on_update
        self._latest_request_id = 0
        self._state: SearchState = Idle()
        self._displayed: Optional[Settled] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def results(self) -> Sequence[Any]:
        """Results currently on display (empty before the first reply)."""
        return self._displayed.results if self._displayed else ()

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    def on_input(self, text: str) -> None:
        """Record a keystroke; restarts the quiet-period timer."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire, text)

    async def issue(self, text: str) -> bool:
        """Query immediately. Returns True if the reply was displayed."""
        self._latest_request_id += 1
        request_id = self._latest_request_id
        self._state = Pending(query=text, request_id=request_id)

        try:
            results = await self._fetch(text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Search request %d for %r failed: %s", request_id, text, exc)
            if request_id == self._latest_request_id:
                # keep showing whatever was there before
                self._state = self._displayed or Idle()
            return False

        return self._apply(request_id, text, results)

    async def drain(self) -> None:
        """Wait for every query already sent to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def aclose(self) -> None:
        """Drop the pending keystroke and cancel queries in flight."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._in_flight):
            task.cancel()
        await self.drain()

    # -- internal helpers ---------------------------------------------------

    def _fire(self, text: str) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.issue(text))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _fetch(self, text: str) -> Sequence[Any]:
        query = text.strip()
        if not query:
            return await self._list_all()
        return await self._search(query)

    def _apply(self, request_id: int, query: str, results: Sequence[Any]) -> bool:
        if request_id != self._latest_request_id:
            logger.debug(
                "Discarding stale reply %d for %r (latest is %d)",
                request_id, query, self._latest_request_id,
            )
            return False
        self._displayed = Settled(query=query, results=tuple(results))
        self._state = self._displayed
        if self._on_update is not None:
            self._on_update(self._displayed)
        return True
