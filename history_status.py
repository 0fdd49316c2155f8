#!/usr/bin/env python3
"""
History Status Utility - Show today's progress and the drink history
"""

import argparse
from pathlib import Path

from config import AppConfig, build_tracker
from time_service import is_same_day


def progress_bar(amount: int, target: int, width: int = 20) -> str:
    if target <= 0:
        return "-" * width
    filled = min(width, int(width * amount / target))
    return "█" * filled + "░" * (width - filled)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Show drink history')
    parser.add_argument('--data-dir', help='Data directory (default: DATA_DIR or ./data)')
    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    if args.data_dir:
        config.data_dir = args.data_dir

    if not Path(config.data_dir).exists():
        print("❌ Data directory not found. Nothing tracked yet.")
        return

    # Read only: a pending rollover is reported, not performed
    tracker = build_tracker(config)
    target = tracker.target_amount
    today_amount = tracker.current_amount
    today_entries = tracker.drink_entries
    rollover_pending = not is_same_day(tracker.last_reset_date, tracker.clock())
    if rollover_pending:
        today_amount = 0
        today_entries = []

    print("💧 DRINK TRACKER - HISTORY")
    print("=" * 40)
    print(f"Today: {today_amount}/{target}ml ({today_amount / target * 100:.0f}%)")
    if rollover_pending and tracker.current_amount > 0:
        last_day = tracker.last_reset_date.date().isoformat() if tracker.last_reset_date else "unknown day"
        print(f"🌅 {tracker.current_amount}ml from {last_day} will be archived when the app next opens")
    print(f"Entries today: {len(today_entries)}")
    for entry in today_entries:
        print(f"   🕐 {entry.timestamp.strftime('%H:%M')} - {entry.amount}ml")

    print("\n📈 LAST 7 DAYS:")
    print("-" * 40)
    for day in tracker.history.last_7_days(today_amount):
        mark = "✅" if day.amount >= target else "  "
        print(f"{day.date.strftime('%a %d.%m')} {progress_bar(day.amount, target)} {day.amount:>5}ml {mark}")

    print("\n📋 ALL DAYS:")
    print("-" * 40)
    for day in tracker.history.full_list_with_today_entry(today_amount):
        print(f"{day.date.isoformat()}  {day.amount:>5}ml")


if __name__ == "__main__":
    main()
