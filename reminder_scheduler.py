import asyncio
import inspect
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Union
from dataclasses import dataclass

from time_service import time_service


@dataclass(frozen=True)
class ReminderRequest:
    identifier: str
    fire_hour: int
    fire_minute: int
    repeats: bool
    title: str
    body: str


@dataclass
class PendingReminder:
    request: ReminderRequest
    next_fire_time: datetime


ReminderCallback = Callable[[ReminderRequest], Union[None, Awaitable[None]]]


def next_occurrence(request: ReminderRequest, after: datetime) -> datetime:
    """Next wall-clock time matching the request's hour and minute, strictly after ``after``"""
    candidate = after.replace(hour=request.fire_hour, minute=request.fire_minute, second=0, microsecond=0)
    if candidate <= after:
        candidate += timedelta(days=1)
    return candidate


class ReminderScheduler:
    """Holds calendar-triggered reminders and fires them from an asyncio loop.

    Adding a request with an identifier that is already pending replaces the
    old one, so reinstalling the same reminder set never duplicates anything.
    """

    def __init__(self, callback: Optional[ReminderCallback] = None,
                 clock: Callable[[], datetime] = None, check_interval_seconds: int = 30):
        self.callback = callback
        self.clock = clock or time_service.now
        self.check_interval_seconds = check_interval_seconds
        self.pending: Dict[str, PendingReminder] = {}
        self._running = False
        self._task = None

    def add(self, request: ReminderRequest):
        next_fire_time = next_occurrence(request, self.clock())
        self.pending[request.identifier] = PendingReminder(request, next_fire_time)
        print(f"🔔 Reminder '{request.identifier}' scheduled for {next_fire_time.strftime('%Y-%m-%d %H:%M')}")

    def remove_all_pending(self):
        self.pending.clear()

    def pending_requests(self) -> List[ReminderRequest]:
        return [pending.request for pending in self.pending.values()]

    def get_next_fire_time(self, identifier: str) -> Optional[datetime]:
        pending = self.pending.get(identifier)
        return pending.next_fire_time if pending else None

    async def fire_due(self, now: Optional[datetime] = None) -> List[ReminderRequest]:
        """Fire every reminder whose time has come, then reschedule or drop it"""
        now = now or self.clock()
        fired = []

        for identifier, pending in list(self.pending.items()):
            if now < pending.next_fire_time:
                continue

            try:
                if self.callback:
                    result = self.callback(pending.request)
                    if inspect.isawaitable(result):
                        await asyncio.wait_for(result, timeout=30.0)
            except asyncio.TimeoutError:
                print(f"Reminder '{identifier}' callback timed out")
            except Exception as e:
                print(f"Error delivering reminder '{identifier}': {e}")

            fired.append(pending.request)
            # The callback may have reinstalled the set already
            if self.pending.get(identifier) is not pending:
                continue
            if pending.request.repeats:
                pending.next_fire_time = next_occurrence(pending.request, now)
            else:
                del self.pending[identifier]

        return fired

    async def _reminder_loop(self):
        while self._running:
            await self.fire_due()
            try:
                await asyncio.sleep(self.check_interval_seconds)
            except asyncio.CancelledError:
                print("Reminder loop cancelled")
                break

    async def start(self):
        if not self._running:
            self._running = True
            self._task = asyncio.create_task(self._reminder_loop())
            print("⏰ Reminder scheduler started")

    async def stop(self):
        self._running = False
        task = self._task
        if task and not task.done():
            task.cancel()
            try:
                await asyncio.wait([task], timeout=2.0)
            except asyncio.TimeoutError:
                print("Warning: reminder loop didn't cancel within timeout")
        self._task = None
