import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from daily_stats import DailyHistoryLog
from drink_manager import DrinkTracker
from health_sync import HealthSyncSink
from notification_manager import NotificationManager
from persistent_storage import KeyValueStore


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class AppConfig:
    data_dir: str = "data"
    default_target_amount_ml: int = 2000
    target_min_ml: int = 500
    target_max_ml: int = 5000
    target_step_ml: int = 100
    health_sync_url: Optional[str] = None
    health_sync_token: Optional[str] = None
    health_sync_default: bool = True
    time_sync_enabled: bool = True
    rollover_check_seconds: int = 60
    reminder_check_seconds: int = 30
    port: int = 8080

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build the configuration from the environment and an optional .env file"""
        load_dotenv()
        return cls(
            data_dir=os.getenv('DATA_DIR', 'data'),
            default_target_amount_ml=int(os.getenv('DEFAULT_TARGET_AMOUNT_ML', 2000)),
            target_min_ml=int(os.getenv('TARGET_MIN_ML', 500)),
            target_max_ml=int(os.getenv('TARGET_MAX_ML', 5000)),
            target_step_ml=int(os.getenv('TARGET_STEP_ML', 100)),
            health_sync_url=os.getenv('HEALTH_SYNC_URL') or None,
            health_sync_token=os.getenv('HEALTH_SYNC_TOKEN') or None,
            health_sync_default=_env_bool('HEALTH_SYNC_DEFAULT', True),
            time_sync_enabled=_env_bool('TIME_SYNC_ENABLED', True),
            rollover_check_seconds=int(os.getenv('ROLLOVER_CHECK_SECONDS', 60)),
            reminder_check_seconds=int(os.getenv('REMINDER_CHECK_SECONDS', 30)),
            port=int(os.getenv('PORT', 8080)),
        )


def build_tracker(config: AppConfig, scheduler=None, clock=None):
    """Wire store, history log, reminders and health sync into a tracker"""
    store = KeyValueStore(config.data_dir)
    history = DailyHistoryLog(store, clock=clock)
    notifications = NotificationManager(scheduler, store) if scheduler is not None else None
    health_sink = HealthSyncSink(config.health_sync_url, config.health_sync_token)
    return DrinkTracker(
        store,
        history,
        notifications=notifications,
        health_sink=health_sink,
        clock=clock,
        default_target_amount=config.default_target_amount_ml,
        health_sync_default=config.health_sync_default,
    )
