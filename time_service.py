import asyncio
import aiohttp
from datetime import date, datetime, timedelta, timezone
from typing import Optional


class TimeService:
    """Local wall-clock time, optionally corrected by a time API offset.

    The daily rollover is decided on local calendar days, so every helper here
    works in the machine's local timezone.
    """

    def __init__(self):
        self.api_time_offset = 0.0  # seconds between API time and system time
        self.last_sync_time: Optional[datetime] = None
        self.time_apis = [
            "http://worldclockapi.com/api/json/utc/now",
        ]

    async def sync_time(self) -> bool:
        """Calculate the offset against the first time API that answers"""
        for api_url in self.time_apis:
            try:
                timeout = aiohttp.ClientTimeout(total=10, connect=5)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.get(api_url, headers={'User-Agent': 'DrinkTracker/1.0'}) as response:
                        if response.status != 200:
                            print(f"❌ HTTP {response.status} from {api_url}")
                            continue
                        data = await response.json(content_type=None)
                        api_time = self._parse_api_response(data)
                        if api_time:
                            system_time = datetime.now(timezone.utc)
                            self.api_time_offset = (api_time - system_time).total_seconds()
                            self.last_sync_time = system_time
                            print(f"✅ Time synced with {api_url}. Offset: {self.api_time_offset:.2f}s")
                            return True
            except asyncio.TimeoutError:
                print(f"⏱️ Timeout connecting to {api_url}")
            except Exception as e:
                print(f"❌ Failed to sync with {api_url}: {e}")

        print("⚠️  Could not sync with any time API, using system time")
        self.last_sync_time = datetime.now(timezone.utc)
        self.api_time_offset = 0.0
        return False

    def _parse_api_response(self, data: dict) -> Optional[datetime]:
        try:
            dt = datetime.fromisoformat(data['currentDateTime'].replace('Z', '+00:00'))
        except (KeyError, AttributeError, ValueError) as e:
            print(f"Failed to parse time API response {data}: {e}")
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def now(self) -> datetime:
        """Current local time (timezone-aware), seconds resolution"""
        current = datetime.now().astimezone().replace(microsecond=0)
        # Offsets under a second are noise
        if self.last_sync_time and abs(self.api_time_offset) >= 1:
            current += timedelta(seconds=self.api_time_offset)
        return current


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def local_midnight(day: date, like: Optional[datetime] = None) -> datetime:
    """Midnight of ``day``, carrying the tzinfo of ``like`` when given"""
    tzinfo = like.tzinfo if like is not None else None
    return datetime(day.year, day.month, day.day, tzinfo=tzinfo)


def is_same_day(first: Optional[datetime], second: datetime) -> bool:
    if first is None:
        return False
    return first.date() == second.date()


# Global time service instance
time_service = TimeService()
