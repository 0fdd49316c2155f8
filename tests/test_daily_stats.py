from datetime import date

from daily_stats import DailyHistoryLog
from persistent_storage import DAILY_WATER_ENTRIES_KEY, DailyTotal


def test_add_entry_defaults_to_yesterday(history, store):
    entry = history.add_entry(1800)

    assert entry == DailyTotal(date=date(2026, 10, 18), amount=1800)
    assert store.get(DAILY_WATER_ENTRIES_KEY) == [{"date": "2026-10-18", "amount": 1800}]


def test_add_entry_with_explicit_day(history):
    history.add_entry(900, date(2026, 10, 10))

    assert history.entries == [DailyTotal(date=date(2026, 10, 10), amount=900)]


def test_entries_survive_reload(history, store, clock):
    history.add_entry(1200, date(2026, 10, 17))
    history.add_entry(1500, date(2026, 10, 18))

    reloaded = DailyHistoryLog(store, clock=clock)

    assert [entry.amount for entry in reloaded.entries] == [1200, 1500]


def test_unreadable_entries_are_skipped(store, clock):
    store.set(DAILY_WATER_ENTRIES_KEY, [{"date": "2026-10-17", "amount": 1000}, {"date": "garbage"}])

    history = DailyHistoryLog(store, clock=clock)

    assert history.entries == [DailyTotal(date=date(2026, 10, 17), amount=1000)]


def test_full_list_adds_today_and_sorts_descending(history):
    history.add_entry(1000, date(2026, 10, 16))
    history.add_entry(2000, date(2026, 10, 18))

    full_list = history.full_list_with_today_entry(650)

    assert [(entry.date, entry.amount) for entry in full_list] == [
        (date(2026, 10, 19), 650),
        (date(2026, 10, 18), 2000),
        (date(2026, 10, 16), 1000),
    ]
    # The stored log itself is untouched
    assert len(history.entries) == 2


def test_last_7_days_fills_gaps_with_zero(history):
    history.add_entry(1700, date(2026, 10, 18))  # day -1
    history.add_entry(1300, date(2026, 10, 16))  # day -3

    window = history.last_7_days(420)

    assert [entry.date for entry in window] == [date(2026, 10, day) for day in range(13, 20)]
    assert [entry.amount for entry in window] == [0, 0, 0, 1300, 0, 1700, 420]


def test_last_7_days_ignores_older_history(history):
    history.add_entry(2500, date(2026, 10, 1))

    window = history.last_7_days(0)

    assert len(window) == 7
    assert all(entry.amount == 0 for entry in window)
