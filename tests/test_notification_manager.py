import random

from notification_manager import (
    DAYTIME_MESSAGES,
    EVENING_MESSAGES,
    NotificationManager,
    build_reminder_requests,
)
from persistent_storage import NOTIFICATION_PERMISSIONS_KEY


def identifiers(requests):
    return [request.identifier for request in requests]


def test_all_checkpoints_below_first_threshold():
    requests = build_reminder_requests(400, 2000)

    assert identifiers(requests) == ["water-12", "water-16", "water-20"]
    assert [(r.fire_hour, r.fire_minute) for r in requests] == [(12, 0), (16, 0), (20, 0)]
    assert all(request.repeats for request in requests)


def test_no_checkpoints_above_last_threshold():
    assert build_reminder_requests(1600, 2000) == []


def test_threshold_reached_exactly_is_skipped():
    assert identifiers(build_reminder_requests(500, 2000)) == ["water-16", "water-20"]
    assert identifiers(build_reminder_requests(1000, 2000)) == ["water-20"]
    assert identifiers(build_reminder_requests(1499, 2000)) == ["water-20"]


def test_identifiers_are_stable_across_calls():
    first = build_reminder_requests(300, 2000, random.Random(1))
    second = build_reminder_requests(300, 2000, random.Random(2))

    assert identifiers(first) == identifiers(second)


def test_same_inputs_and_seed_give_identical_requests():
    assert build_reminder_requests(300, 2000, random.Random(7)) == build_reminder_requests(300, 2000, random.Random(7))


def test_daytime_messages_come_from_pool():
    for seed in range(10):
        requests = build_reminder_requests(0, 2000, random.Random(seed))
        for request in requests[:2]:
            assert request.body in DAYTIME_MESSAGES


def test_evening_message_embeds_remaining_amount():
    for seed in range(10):
        evening = build_reminder_requests(600, 2000, random.Random(seed))[-1]
        assert evening.identifier == "water-20"
        assert "1400ml" in evening.body
        assert evening.body in [message.format(remaining=1400) for message in EVENING_MESSAGES]


def test_schedule_replaces_pending_set(scheduler, store):
    manager = NotificationManager(scheduler, store)

    manager.schedule_daily_notifications(0, 2000, True)
    manager.schedule_daily_notifications(0, 2000, True)
    assert sorted(scheduler.pending) == ["water-12", "water-16", "water-20"]

    manager.schedule_daily_notifications(1100, 2000, True)
    assert sorted(scheduler.pending) == ["water-20"]


def test_schedule_without_permission_does_nothing(scheduler, store):
    manager = NotificationManager(scheduler, store)

    assert manager.schedule_daily_notifications(0, 2000, False) == []
    assert scheduler.pending == {}


def test_request_authorization_grant_schedules(scheduler, store):
    manager = NotificationManager(scheduler, store)

    manager.request_authorization(True, 0, 2000)

    assert store.get(NOTIFICATION_PERMISSIONS_KEY) is True
    assert manager.permissions_granted
    assert len(scheduler.pending) == 3


def test_request_authorization_denied_clears_reminders(scheduler, store):
    manager = NotificationManager(scheduler, store)
    manager.request_authorization(True, 0, 2000)

    manager.request_authorization(False)

    assert store.get(NOTIFICATION_PERMISSIONS_KEY) is False
    assert scheduler.pending == {}


def test_scheduling_error_is_logged_not_raised(store, capsys):
    class BrokenScheduler:
        def remove_all_pending(self):
            pass

        def add(self, request):
            raise RuntimeError("scheduler offline")

    manager = NotificationManager(BrokenScheduler(), store)

    assert manager.schedule_daily_notifications(0, 2000, True) == []
    assert "scheduler offline" in capsys.readouterr().out
