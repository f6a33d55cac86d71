"""Fetch -> expand -> filter -> grid/placement, once per render."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .clock import format_timestamp, wall_clock
from .config import build_window, config_timezone, feed_location, normalize_config
from .errors import FeedError
from .expander import parse_definitions
from .feed import fetch_feed_async
from .grid import DayColumn, build_grid
from .placement import place_occurrences
from .window import VisibleWindow, collect_occurrences

logger = logging.getLogger(__name__)


@dataclass
class CalendarView:
    window: VisibleWindow
    now: datetime
    columns: List[DayColumn]
    row_height: int
    clock_text: str
    feed_ok: bool = True
    error: Optional[str] = None
    show_notes: bool = True

    @property
    def events(self):
        return [event for column in self.columns for event in column.events]


async def load_occurrences(cfg, window, tzinfo, fetch=fetch_feed_async):
    text = await fetch(feed_location(cfg), cfg["fetch_timeout"])
    definitions = parse_definitions(text, tzinfo)
    return collect_occurrences(definitions, window)


def layout_columns(occurrences, window, now, row_height):
    columns = build_grid(window, now, row_height)
    return place_occurrences(columns, occurrences, window, now)


async def build_calendar(cfg, now=None, fetch=fetch_feed_async):
    """Build a fresh :class:`CalendarView` for ``now`` (defaults to the wall clock)."""
    cfg = normalize_config(cfg)
    tzinfo = config_timezone(cfg)
    now = now.astimezone(tzinfo) if now else wall_clock(tzinfo)
    window = build_window(cfg, now)

    feed_ok, error = True, None
    try:
        occurrences = await load_occurrences(cfg, window, tzinfo, fetch=fetch)
    except FeedError as exc:
        logger.warning("Calendar feed unavailable, rendering empty grid: %s", exc)
        occurrences, feed_ok, error = [], False, str(exc)

    columns = layout_columns(occurrences, window, now, cfg["row_height"])
    view = CalendarView(
        window=window,
        now=now,
        columns=columns,
        row_height=cfg["row_height"],
        clock_text=format_timestamp(now),
        feed_ok=feed_ok,
        error=error,
        show_notes=cfg["show_notes"],
    )
    logger.info(
        "Rendered %d days from %s with %d events",
        window.num_days,
        window.start_date.isoformat(),
        len(view.events),
    )
    return view


def render_calendar(cfg, now=None):
    return asyncio.run(build_calendar(cfg, now=now))
