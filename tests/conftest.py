from datetime import datetime, timedelta

import pytest

from daily_stats import DailyHistoryLog
from drink_manager import DrinkTracker
from notification_manager import NotificationManager
from persistent_storage import KeyValueStore, NOTIFICATION_PERMISSIONS_KEY
from reminder_scheduler import ReminderScheduler


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingHealthSink:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def save_water(self, amount_ml, date):
        self.calls.append((amount_ml, date))
        if self.fail:
            raise ConnectionError("health store unreachable")


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 9, 30))


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(str(tmp_path / "data"))


@pytest.fixture
def history(store, clock):
    return DailyHistoryLog(store, clock=clock)


@pytest.fixture
def scheduler(clock):
    return ReminderScheduler(clock=clock)


@pytest.fixture
def notifications(scheduler, store):
    store.set(NOTIFICATION_PERMISSIONS_KEY, True)
    return NotificationManager(scheduler, store)


@pytest.fixture
def health_sink():
    return RecordingHealthSink()


@pytest.fixture
def tracker(store, history, notifications, health_sink, clock):
    return DrinkTracker(store, history, notifications=notifications, health_sink=health_sink, clock=clock)
