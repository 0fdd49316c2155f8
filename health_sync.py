import asyncio
import aiohttp
from datetime import datetime
from typing import Optional


class HealthSyncSink:
    """Mirrors archived daily totals to an external health record endpoint.

    Every call is fire-and-forget: errors are printed, never raised.
    """

    def __init__(self, endpoint_url: Optional[str] = None, token: Optional[str] = None,
                 timeout_seconds: int = 10):
        self.endpoint_url = endpoint_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._tasks = set()

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint_url)

    def build_payload(self, amount_ml: int, date: datetime) -> dict:
        return {
            "type": "dietary_water",
            "amount_ml": amount_ml,
            "amount_l": amount_ml / 1000.0,
            "start": date.isoformat(),
            "end": date.isoformat(),
        }

    def save_water(self, amount_ml: int, date: datetime):
        """Record ``amount_ml`` at ``date`` without waiting for the result"""
        if not self.is_configured:
            print(f"⚠️ Health sync enabled but HEALTH_SYNC_URL is not set, skipping {amount_ml}ml")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        try:
            if loop is not None:
                task = loop.create_task(self._post(amount_ml, date))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                # No event loop (command line): run the request to completion
                asyncio.run(self._post(amount_ml, date))
        except Exception as e:
            print(f"❌ Could not start health sync: {e}")

    async def _post(self, amount_ml: int, date: datetime) -> bool:
        headers = {'User-Agent': 'DrinkTracker/1.0'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint_url, json=self.build_payload(amount_ml, date),
                                        headers=headers) as response:
                    if response.status >= 400:
                        print(f"❌ Health sync failed: HTTP {response.status}")
                        return False
            print(f"✅ Saved {amount_ml}ml to health records.")
            return True
        except asyncio.TimeoutError:
            print(f"⏱️ Timeout saving {amount_ml}ml to health records")
        except Exception as e:
            print(f"❌ Error saving to health records: {e}")
        return False
