import random
from typing import List, NamedTuple

from persistent_storage import KeyValueStore, NOTIFICATION_PERMISSIONS_KEY
from reminder_scheduler import ReminderRequest, ReminderScheduler


class Checkpoint(NamedTuple):
    hour: int
    minute: int
    fraction: float


CHECKPOINTS = [
    Checkpoint(12, 0, 0.25),
    Checkpoint(16, 0, 0.5),
    Checkpoint(20, 0, 0.75),
]

# Checkpoint whose message carries the amount still missing
EVENING_HOUR = 20

REMINDER_TITLE = "Drink some water"

DAYTIME_MESSAGES = [
    "Time for a glass of water 💧",
    "Have you had enough to drink today?",
    "Hydration break! 🚰",
]

EVENING_MESSAGES = [
    "Only {remaining}ml left to your daily goal - you can do it!",
    "Almost there! Treat yourself to the last {remaining}ml for today",
    "A small sip for you, a big step for your wellbeing - {remaining}ml to go",
]


def reminder_identifier(hour: int) -> str:
    return f"water-{hour}"


def build_reminder_requests(current_amount: int, target_amount: int, rng=random) -> List[ReminderRequest]:
    """Reminders for every checkpoint whose share of the target isn't reached yet."""
    remaining = max(0, target_amount - current_amount)
    requests = []

    for checkpoint in CHECKPOINTS:
        if current_amount >= target_amount * checkpoint.fraction:
            continue

        if checkpoint.hour == EVENING_HOUR:
            body = rng.choice(EVENING_MESSAGES).format(remaining=remaining)
        else:
            body = rng.choice(DAYTIME_MESSAGES)

        requests.append(ReminderRequest(
            identifier=reminder_identifier(checkpoint.hour),
            fire_hour=checkpoint.hour,
            fire_minute=checkpoint.minute,
            repeats=True,
            title=REMINDER_TITLE,
            body=body,
        ))

    return requests


class NotificationManager:
    def __init__(self, scheduler: ReminderScheduler, store: KeyValueStore, rng=random):
        self.scheduler = scheduler
        self.store = store
        self.rng = rng

    @property
    def permissions_granted(self) -> bool:
        return self.store.get_bool(NOTIFICATION_PERMISSIONS_KEY, False)

    def request_authorization(self, granted: bool, current_amount: int = 0, target_amount: int = 0) -> bool:
        """Record the user's answer; a grant schedules reminders right away"""
        self.store.set(NOTIFICATION_PERMISSIONS_KEY, granted)
        if granted and target_amount > 0:
            self.schedule_daily_notifications(current_amount, target_amount, True)
        elif not granted:
            self.scheduler.remove_all_pending()
        return granted

    def schedule_daily_notifications(self, current_amount: int, target_amount: int,
                                     notification_permissions: bool) -> List[ReminderRequest]:
        """Replace every pending reminder with the ones still relevant today."""
        if not notification_permissions:
            return []

        self.scheduler.remove_all_pending()

        installed = []
        for request in build_reminder_requests(current_amount, target_amount, self.rng):
            try:
                self.scheduler.add(request)
                installed.append(request)
            except Exception as e:
                print(f"❌ Error scheduling reminder {request.identifier}: {e}")
        return installed
