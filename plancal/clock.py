import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


def format_timestamp(now):
    return now.strftime("%Y-%m-%d %H:%M:%S")


def wall_clock(tzinfo=None):
    return datetime.now(tzinfo) if tzinfo else datetime.now().astimezone()


class NowTracker:
    """Keeps the displayed clock text fresh.

    Ticks only update :attr:`text`; highlight state lives in the rendered
    calendar and changes when the calendar is rebuilt.
    """

    def __init__(self, tzinfo=None, clock=None, on_tick=None):
        self.tzinfo = tzinfo
        self._clock = clock or (lambda: wall_clock(self.tzinfo))
        self._on_tick = on_tick
        self.text = ""
        self.ticks = 0

    def tick(self):
        self.text = format_timestamp(self._clock())
        self.ticks += 1
        if self._on_tick:
            self._on_tick(self.text)
        return self.text

    async def run(self, stop, interval=TICK_SECONDS):
        """Tick every ``interval`` seconds until ``stop`` (an asyncio.Event) is set."""
        while not stop.is_set():
            self.tick()
            logger.debug("tick %s", self.text)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
