from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class HourLine:
    index: int
    hour: int
    offset: float
    is_current: bool = False

    @property
    def label(self):
        return f"{self.hour:02d}:00"


@dataclass
class CurrentTimeLabel:
    offset: float
    text: str


@dataclass
class DayColumn:
    date: date
    hour_lines: List[HourLine]
    is_today: bool = False
    current_hour_offset: Optional[float] = None
    current_label: Optional[CurrentTimeLabel] = None
    events: list = field(default_factory=list)
    travel: List[str] = field(default_factory=list)

    @property
    def label(self):
        return self.date.strftime("%a %d").upper()


def build_hour_lines(day, window, now, row_height):
    is_today = now is not None and day == now.date()
    lines = []
    for idx in range(window.hours):
        hour = window.start_hour + idx
        lines.append(
            HourLine(
                index=idx,
                hour=hour,
                offset=idx * row_height,
                is_current=is_today and hour == now.hour,
            )
        )
    return lines


def current_hour_label(hour):
    return f"{hour:02d}:00 - {hour + 1:02d}:00"


def build_day_column(day, window, now, row_height):
    lines = build_hour_lines(day, window, now, row_height)
    column = DayColumn(date=day, hour_lines=lines, is_today=now is not None and day == now.date())
    current = next((line for line in lines if line.is_current), None)
    if current is not None:
        column.current_hour_offset = current.offset
        column.current_label = CurrentTimeLabel(
            offset=current.offset + row_height / 2,
            text=current_hour_label(now.hour),
        )
    return column


def build_grid(window, now, row_height):
    return [build_day_column(day, window, now, row_height) for day in window.dates]
