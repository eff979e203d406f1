from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable
from typing import Callable

from discourse.errors import PersistenceError
from discourse.errors import TransportError
from discourse.service import Event
from discourse.service import EventOutcome
from discourse.service import FlushRequest
from discourse.service import handle_event
from discourse.store import TrackerStore
from discourse.tracker import utc_now


class Dispatcher:
    """
    Single consumer for inbound events.

    Everything that touches the store (lookup, elapsed-time math, reset and
    the snapshot write) happens inside process(), and run() awaits each
    process() call before taking the next event off the queue.
    """

    def __init__(
        self,
        *,
        store: TrackerStore,
        bot_nick: Callable[[], str],
        send_notice: Callable[..., Awaitable[None]],
        save_snapshot: Callable[[TrackerStore], None],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self._bot_nick = bot_nick
        self._send_notice = send_notice
        self._save_snapshot = save_snapshot
        self._clock = clock
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

        self.saves_ok = 0
        self.last_save_error: str | None = None
        self.notices_failed = 0
        self.events_failed = 0

    def submit(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def request_save(self, reason: str = "manual") -> None:
        self.submit(FlushRequest(reason=reason))

    def pending(self) -> int:
        return self._queue.qsize()

    async def run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._consume(event)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Process everything currently queued, then return."""
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self._consume(event)
            finally:
                self._queue.task_done()

    async def _consume(self, event: Event) -> None:
        try:
            await self.process(event)
        except Exception as e:
            self.events_failed += 1
            print(f"[Discourse] ERROR handling {type(event).__name__}: {e!r}")

    async def process(self, event: Event) -> EventOutcome:
        now = self._clock()
        outcome = handle_event(event, self.store, bot_nick=self._bot_nick(), now=now)

        for line in outcome.log_lines:
            print(line)

        try:
            for notice in outcome.notices:
                try:
                    await self._send_notice(notice.target, notice.text, route=notice.route)
                except TransportError as e:
                    self.notices_failed += 1
                    print(f"[Notice] failed to send to {notice.target}: {e}")
        finally:
            # the store is already mutated; persist it even if a send blew up
            if outcome.mutated:
                await self._save()
        return outcome

    async def _save(self) -> None:
        try:
            await asyncio.to_thread(self._save_snapshot, self.store)
        except PersistenceError as e:
            self.last_save_error = str(e)
            print(f"[Snapshot] ERROR: {e}")
            return
        self.saves_ok += 1
        self.last_save_error = None
