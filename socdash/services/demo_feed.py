# socdash/services/demo_feed.py
"""
Optional random alert source for demos.

It is just another ingestion client: every tick it may build an alert draft
and push it through ingest_alert like any external source would.
"""
import asyncio
import random
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from socdash.core import tracing
from socdash.core.config import settings
from socdash.db.models.enums import AlertSeverity
from socdash.realtime.broadcaster import Broadcaster
from socdash.services.ingestion import ingest_alert

ALERT_TYPES = ['Port Scan', 'Failed Login', 'Suspicious Network Traffic', 'Malware Detection']

LOCATIONS = [
    {"country_code": "CN", "city": "Beijing", "latitude": 39.9042, "longitude": 116.4074},
    {"country_code": "RU", "city": "Moscow", "latitude": 55.7558, "longitude": 37.6176},
    {"country_code": "US", "city": "New York", "latitude": 40.7128, "longitude": -74.0060},
]


def build_demo_alert(rng: Optional[random.Random] = None) -> dict:
    """Random alert draft shaped like a real ingestion payload"""
    rng = rng or random
    alert_type = rng.choice(ALERT_TYPES)
    source_ip = ".".join(str(rng.randint(1, 254)) for _ in range(4))
    return {
        "alert_type": alert_type,
        "severity": rng.choice(list(AlertSeverity)).value,
        "source_ip": source_ip,
        "destination_ip": "192.168.1.100",
        "source_port": rng.randint(1024, 65535),
        "destination_port": rng.choice([22, 80, 443, 3389]),
        "protocol": rng.choice(["TCP", "UDP"]),
        "description": f"Real-time {alert_type} detected from {source_ip}",
        "raw_event": {"source": "demo-feed", "details": f"{alert_type} from {source_ip}"},
        **rng.choice(LOCATIONS),
    }


class DemoAlertFeed:
    """Background task emitting random alerts at a fixed tick"""

    def __init__(
            self,
            session_factory: async_sessionmaker,
            broadcaster: Broadcaster,
            interval: Optional[float] = None,
            probability: Optional[float] = None,
            rng: Optional[random.Random] = None
    ):
        self.session_factory = session_factory
        self.broadcaster = broadcaster
        self.interval = interval or settings.DEMO_FEED_INTERVAL_SECONDS
        self.probability = settings.DEMO_FEED_PROBABILITY if probability is None else probability
        self.rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

    async def tick(self) -> bool:
        """Maybe emit one alert; returns True when one was ingested"""
        if self.rng.random() >= self.probability:
            return False
        async with self.session_factory() as db:
            await ingest_alert(db, build_demo_alert(self.rng), self.broadcaster)
        return True

    async def _run(self):
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                tracing.error(f"Demo alert generation failed: {e}", task="demo_feed", error_type=type(e).__name__)
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        tracing.info("Demo alert feed started", interval=self.interval, probability=self.probability)
        self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        tracing.info("Demo alert feed stopped")
