from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from daily_stats import DailyHistoryLog
from health_sync import HealthSyncSink
from notification_manager import NotificationManager
from persistent_storage import (
    CURRENT_AMOUNT_KEY,
    DRINK_ENTRIES_KEY,
    HEALTH_SYNC_ENABLED_KEY,
    LAST_RESET_DATE_KEY,
    NOTIFICATION_PERMISSIONS_KEY,
    TARGET_AMOUNT_KEY,
    DrinkEntry,
    KeyValueStore,
    parse_datetime,
)
from time_service import is_same_day, local_midnight, time_service

DEFAULT_TARGET_AMOUNT = 2000


class DrinkTracker:
    """Today's running total, its drink entries and the daily rollover.

    State is only mutated through ``add_drink``, ``delete_drink``,
    ``update_drink_entry``, ``set_target_amount`` and ``reset_if_needed``.
    Each of them persists the changed keys, reinstalls reminders (where the
    total or the target may have changed) and notifies subscribers.
    """

    def __init__(self, store: KeyValueStore, history: DailyHistoryLog,
                 notifications: Optional[NotificationManager] = None,
                 health_sink: Optional[HealthSyncSink] = None,
                 clock: Callable[[], datetime] = None,
                 default_target_amount: int = DEFAULT_TARGET_AMOUNT,
                 health_sync_default: bool = True):
        self.store = store
        self.history = history
        self.notifications = notifications
        self.health_sink = health_sink
        self.clock = clock or time_service.now
        self.default_target_amount = default_target_amount
        self.health_sync_default = health_sync_default

        self.current_amount = 0
        self.target_amount = default_target_amount
        self.last_reset_date: Optional[datetime] = None
        self.drink_entries: List[DrinkEntry] = []
        self._listeners: List[Callable[["DrinkTracker"], None]] = []

        self.load()

    # -- persistence ---------------------------------------------------

    def load(self):
        """Replace in-memory state with what the store holds"""
        self.current_amount = self.store.get_int(CURRENT_AMOUNT_KEY, 0)
        target = self.store.get_int(TARGET_AMOUNT_KEY, 0)
        self.target_amount = target if target > 0 else self.default_target_amount
        self.last_reset_date = parse_datetime(self.store.get(LAST_RESET_DATE_KEY))

        entries = []
        for raw in self.store.get(DRINK_ENTRIES_KEY, []) or []:
            try:
                entries.append(DrinkEntry.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                print(f"⚠️ Skipping unreadable drink entry {raw!r}: {e}")
        self.drink_entries = entries

    def save(self):
        values = {
            CURRENT_AMOUNT_KEY: self.current_amount,
            TARGET_AMOUNT_KEY: self.target_amount,
        }
        if self.last_reset_date is not None:
            values[LAST_RESET_DATE_KEY] = self.last_reset_date.isoformat()
        try:
            values[DRINK_ENTRIES_KEY] = [entry.to_dict() for entry in self.drink_entries]
        except (AttributeError, TypeError, ValueError) as e:
            # The running total is still saved without the entry list
            print(f"❌ Could not encode drink entries: {e}")
        self.store.set_many(values)

    def refresh(self):
        """Re-read the store so writes from other processes aren't overwritten"""
        self.store.reload()
        self.load()
        self.history.reload()

    # -- observers -----------------------------------------------------

    def subscribe(self, callback: Callable[["DrinkTracker"], None]):
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[["DrinkTracker"], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_changed(self):
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                print(f"Error in tracker listener: {e}")

    # -- settings ------------------------------------------------------

    @property
    def health_sync_enabled(self) -> bool:
        return self.store.get_bool(HEALTH_SYNC_ENABLED_KEY, self.health_sync_default)

    def set_health_sync_enabled(self, enabled: bool):
        self.store.set(HEALTH_SYNC_ENABLED_KEY, enabled)

    def set_target_amount(self, amount: int):
        if amount <= 0:
            print(f"⚠️ Ignoring non-positive target amount {amount}")
            return
        self.reset_if_needed()
        self.target_amount = amount
        self.save()
        self.update_notifications()
        self._notify_changed()

    # -- daily rollover ------------------------------------------------

    def reset_if_needed(self) -> bool:
        """Archive and clear yesterday's state once the local day changed.

        The store is re-read first, so drinks added by the add_drink command
        while the app is running are kept. Returns True when a rollover
        happened. Calling it again on the same day leaves everything untouched.
        """
        self.refresh()
        now = self.clock()
        if is_same_day(self.last_reset_date, now):
            return False

        if self.current_amount > 0:
            if self.last_reset_date is not None:
                archived_day = self.last_reset_date.date()
            else:
                # Reset date lost or unreadable: book the total on yesterday
                archived_day = now.date() - timedelta(days=1)
            self.history.add_entry(self.current_amount, archived_day)
            if self.health_sync_enabled and self.health_sink is not None:
                try:
                    self.health_sink.save_water(self.current_amount, local_midnight(archived_day, now))
                except Exception as e:
                    print(f"❌ Health sync failed: {e}")

        previous_amount = self.current_amount
        self.current_amount = 0
        self.drink_entries = []
        self.last_reset_date = now
        self.save()
        print(f"🌅 Daily total saved and reset ({previous_amount}ml archived)")

        self.update_notifications()
        self._notify_changed()
        return True

    def on_app_active(self) -> bool:
        """Run the rollover check and redraw observers even when nothing rolled over"""
        rolled_over = self.reset_if_needed()
        if not rolled_over:
            self._notify_changed()
        return rolled_over

    # -- drink entries -------------------------------------------------

    def add_drink(self, amount: int) -> Optional[DrinkEntry]:
        if amount <= 0:
            print(f"⚠️ Ignoring non-positive drink amount {amount}")
            return None

        self.reset_if_needed()
        entry = DrinkEntry(amount=amount, timestamp=self.clock())
        self.drink_entries.append(entry)
        self.current_amount += amount
        self.save()
        print(f"💧 Added {amount}ml ({self.current_amount}/{self.target_amount}ml today)")
        self.update_notifications()
        self._notify_changed()
        return entry

    def delete_drink(self, entry_id: str) -> bool:
        self.reset_if_needed()
        index = self._find_index(entry_id)
        if index is None:
            return False

        self.current_amount -= self.drink_entries[index].amount
        del self.drink_entries[index]
        self.save()
        self.update_notifications()
        self._notify_changed()
        return True

    def update_drink_entry(self, entry_id: str, new_timestamp: datetime) -> bool:
        self.reset_if_needed()
        index = self._find_index(entry_id)
        if index is None:
            return False

        old = self.drink_entries[index]
        self.drink_entries[index] = DrinkEntry(id=old.id, amount=old.amount, timestamp=new_timestamp)
        self.drink_entries.sort(key=lambda entry: entry.timestamp)
        self.save()
        self.update_notifications()
        self._notify_changed()
        return True

    def get_entry(self, entry_id: str) -> Optional[DrinkEntry]:
        index = self._find_index(entry_id)
        return self.drink_entries[index] if index is not None else None

    def _find_index(self, entry_id: str) -> Optional[int]:
        for index, entry in enumerate(self.drink_entries):
            if entry.id == entry_id:
                return index
        return None

    # -- reminders -----------------------------------------------------

    def update_notifications(self):
        if self.notifications is None:
            return
        granted = self.store.get_bool(NOTIFICATION_PERMISSIONS_KEY, False)
        try:
            self.notifications.schedule_daily_notifications(self.current_amount, self.target_amount, granted)
        except Exception as e:
            print(f"❌ Error updating reminders: {e}")

    # -- read helpers --------------------------------------------------

    @property
    def progress(self) -> float:
        return self.current_amount / self.target_amount if self.target_amount > 0 else 0.0

    @property
    def remaining_amount(self) -> int:
        return max(0, self.target_amount - self.current_amount)

    @property
    def goal_reached(self) -> bool:
        return self.current_amount >= self.target_amount

    def cumulative_steps(self) -> List[Tuple[int, datetime]]:
        """Running total after each entry, in entry order"""
        total = 0
        steps = []
        for entry in self.drink_entries:
            total += entry.amount
            steps.append((total, entry.timestamp))
        return steps
