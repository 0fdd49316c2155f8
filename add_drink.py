#!/usr/bin/env python3
"""
Add Drink Shortcut

Adds an amount of water to today's total from the command line, the same way
the "Add" button does. Meant to be bound to voice assistants or shortcuts.
"""

import sys
import argparse

from config import AppConfig, build_tracker


def positive_amount(value: str) -> int:
    try:
        amount = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a whole number of ml")
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be greater than 0")
    return amount


def main(argv=None):
    parser = argparse.ArgumentParser(description='Add water to today\'s drink total')
    parser.add_argument('amount', type=positive_amount, help='Amount in ml')
    parser.add_argument('--data-dir', help='Data directory (default: DATA_DIR or ./data)')

    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    if args.data_dir:
        config.data_dir = args.data_dir

    try:
        tracker = build_tracker(config)
        tracker.add_drink(args.amount)
    except Exception as e:
        print(f"❌ Error adding drink: {e}")
        sys.exit(1)

    print(f"✅ Added {args.amount}ml. Today: {tracker.current_amount}/{tracker.target_amount}ml")
    return 0


if __name__ == "__main__":
    main()
