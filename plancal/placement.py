import logging
from dataclasses import dataclass

from .utils import format_duration, format_time
from .window import Occurrence

logger = logging.getLogger(__name__)


@dataclass
class PositionedEvent:
    top_offset_minutes: int
    height_minutes: int
    occurrence: Occurrence
    is_current: bool = False
    badge: str = "tentative"

    def top(self, row_height):
        return self.top_offset_minutes * row_height / 60

    def height(self, row_height):
        return self.height_minutes * row_height / 60

    @property
    def time_label(self):
        return f"{format_time(self.occurrence.start)} - {format_time(self.occurrence.end)}"

    @property
    def duration_label(self):
        delta = self.occurrence.end - self.occurrence.start
        return format_duration(delta.total_seconds() // 60)


def minute_of_day(dt):
    return dt.hour * 60 + dt.minute


def clip_to_hours(start_min, end_min, win_start_min, win_end_min):
    """Return ``(top, height)`` of the visible part, or ``None`` when nothing shows.

    Head clip runs first; the tail clip overwrites its height when both apply.
    """
    if end_min <= win_start_min or start_min >= win_end_min:
        return None
    top = max(0, start_min - win_start_min)
    height = end_min - start_min
    if start_min < win_start_min:
        height = max(0, end_min - win_start_min)
    if end_min > win_end_min:
        height = win_end_min - max(win_start_min, start_min)
    if height <= 0:
        return None
    return top, height


def is_current(occurrence, now):
    return now is not None and occurrence.start <= now <= occurrence.end


def event_badge(occurrence, now):
    if occurrence.confirmed:
        return "confirmed"
    if now is not None and occurrence.end < now:
        return "missed"
    return "tentative"


def place_occurrence(occurrence, window, now):
    start = occurrence.start.astimezone(window.tzinfo) if window.tzinfo else occurrence.start
    end = occurrence.end.astimezone(window.tzinfo) if window.tzinfo else occurrence.end
    bounds = clip_to_hours(minute_of_day(start), minute_of_day(end), window.start_minute, window.end_minute)
    if bounds is None:
        return None
    top, height = bounds
    return PositionedEvent(
        top_offset_minutes=top,
        height_minutes=height,
        occurrence=occurrence,
        is_current=is_current(occurrence, now),
        badge=event_badge(occurrence, now),
    )


def day_travel(events):
    route = []
    for event in events:
        location = event.occurrence.location
        if location and (not route or route[-1] != location):
            route.append(location)
    return route


def place_occurrences(columns, occurrences, window, now):
    by_date = {column.date: column for column in columns}
    skipped = 0
    for occurrence in occurrences:
        start = occurrence.start.astimezone(window.tzinfo) if window.tzinfo else occurrence.start
        column = by_date.get(start.date())
        if column is None:
            skipped += 1
            continue
        placed = place_occurrence(occurrence, window, now)
        if placed is None:
            skipped += 1
            continue
        column.events.append(placed)
    for column in columns:
        column.travel = day_travel(column.events)
    if skipped:
        logger.debug("%d occurrences outside the visible hours", skipped)
    return columns
