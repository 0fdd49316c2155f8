from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from persistent_storage import DAILY_WATER_ENTRIES_KEY, DailyTotal, KeyValueStore
from time_service import time_service


class DailyHistoryLog:
    """Append-only log of archived daily totals.

    The whole list lives in memory and is written back in full on every
    append.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = None):
        self.store = store
        self.clock = clock or time_service.now
        self.entries: List[DailyTotal] = []
        self.load()

    def load(self):
        raw_entries = self.store.get(DAILY_WATER_ENTRIES_KEY, []) or []
        entries = []
        for raw in raw_entries:
            try:
                entries.append(DailyTotal.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                print(f"⚠️ Skipping unreadable history entry {raw!r}: {e}")
        self.entries = entries

    def reload(self):
        self.load()

    def add_entry(self, amount: int, day: Optional[date] = None) -> DailyTotal:
        """Archive ``amount`` for ``day`` (defaults to yesterday)"""
        if day is None:
            day = self.clock().date() - timedelta(days=1)
        entry = DailyTotal(date=day, amount=amount)
        self.entries.append(entry)
        self._save()
        print(f"📅 Archived {amount}ml for {day.isoformat()}")
        return entry

    def _save(self):
        self.store.set(DAILY_WATER_ENTRIES_KEY, [entry.to_dict() for entry in self.entries])

    def full_list_with_today_entry(self, current_amount: int) -> List[DailyTotal]:
        today = DailyTotal(date=self.clock().date(), amount=current_amount)
        return sorted(self.entries + [today], key=lambda entry: entry.date, reverse=True)

    def last_7_days(self, current_amount: int) -> List[DailyTotal]:
        """Seven consecutive days ending today, oldest first.

        Days without a record show up with amount 0; today always carries the
        live running total.
        """
        full_list = self.full_list_with_today_entry(current_amount)
        today = self.clock().date()

        window = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            amount = next((entry.amount for entry in full_list if entry.date == day), 0)
            window.append(DailyTotal(date=day, amount=amount))
        return window
