import json
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict, field
from pathlib import Path

# Persisted keys
CURRENT_AMOUNT_KEY = "currentAmount"
TARGET_AMOUNT_KEY = "targetAmount"
LAST_RESET_DATE_KEY = "lastResetDate"
DRINK_ENTRIES_KEY = "drinkEntries"
DAILY_WATER_ENTRIES_KEY = "dailyWaterEntries"
NOTIFICATION_PERMISSIONS_KEY = "notificationPermissions"
HEALTH_SYNC_ENABLED_KEY = "healthKitSyncEnabled"


@dataclass
class DrinkEntry:
    amount: int
    timestamp: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DrinkEntry":
        return cls(
            id=data["id"],
            amount=int(data["amount"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class DailyTotal:
    date: date
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "amount": self.amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyTotal":
        return cls(date=date.fromisoformat(data["date"]), amount=int(data["amount"]))


class KeyValueStore:
    """Flat key-value store kept in a single JSON file.

    Every ``set`` rewrites the whole file. Read and write errors are printed
    and swallowed: the in-memory values stay usable for the running session.
    """

    def __init__(self, data_dir: str = "data", filename: str = "app_state.json"):
        self.data_dir = Path(data_dir)
        self.state_file = self.data_dir / filename
        self._values: Dict[str, Any] = {}

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"❌ Could not create data directory {self.data_dir}: {e}")

        self.reload()

    def _read_json(self, file_path: Path, default=None):
        """Safely read JSON file"""
        if not file_path.exists():
            return default if default is not None else {}
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error reading {file_path}: {e}")
            return default if default is not None else {}

    def _write_json(self, file_path: Path, data) -> bool:
        """Write to a temp file first, then rename over the target"""
        try:
            temp_file = file_path.with_suffix('.tmp')
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)
            temp_file.replace(file_path)
            return True
        except (OSError, TypeError, ValueError) as e:
            print(f"Error writing {file_path}: {e}")
            return False

    def reload(self):
        """Re-read the state file, picking up writes from other processes"""
        data = self._read_json(self.state_file, {})
        self._values = data if isinstance(data, dict) else {}

    def get(self, key: str, default=None):
        return self._values.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._values.get(key)
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._values.get(key)
        return bool(value) if value is not None else default

    def _merge_from_disk(self):
        # Keys written by another process since our last read win over stale copies
        on_disk = self._read_json(self.state_file, {})
        if isinstance(on_disk, dict):
            self._values.update(on_disk)

    def set(self, key: str, value) -> bool:
        """Store a value and persist the whole file.

        Values that can't be encoded as JSON are rejected before touching the
        in-memory copy, so one bad key never poisons the others.
        """
        return self.set_many({key: value})

    def set_many(self, values: Dict[str, Any]) -> bool:
        """Store several values with a single file write.

        The file is re-read first so keys changed elsewhere survive. Values
        that can't be encoded are skipped; the rest are still written.
        """
        valid = {}
        for key, value in values.items():
            try:
                json.dumps(value)
            except (TypeError, ValueError) as e:
                print(f"❌ Could not encode value for '{key}': {e}")
                continue
            valid[key] = value
        if not valid:
            return False

        self._merge_from_disk()
        self._values.update(valid)
        written = self._write_json(self.state_file, self._values)
        return written and len(valid) == len(values)

    def keys(self) -> List[str]:
        return list(self._values.keys())


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        print(f"⚠️ Ignoring unreadable timestamp {value!r}: {e}")
        return None
