import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibleWindow:
    start_date: date
    num_days: int = 15
    start_hour: int = 6
    end_hour: int = 22
    tzinfo: Optional[tzinfo] = None

    def __post_init__(self):
        if self.num_days < 1:
            raise ConfigError(f"num_days must be at least 1, got {self.num_days}")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ConfigError(
                f"Invalid hour range {self.start_hour}-{self.end_hour}"
            )

    @property
    def range_start(self):
        return datetime.combine(self.start_date, time.min, self.tzinfo)

    @property
    def range_end(self):
        return datetime.combine(self.start_date + timedelta(days=self.num_days), time.min, self.tzinfo)

    @property
    def dates(self):
        return [self.start_date + timedelta(days=idx) for idx in range(self.num_days)]

    @property
    def hours(self):
        return self.end_hour - self.start_hour

    @property
    def start_minute(self):
        return self.start_hour * 60

    @property
    def end_minute(self):
        return self.end_hour * 60


@dataclass(frozen=True)
class Occurrence:
    start: datetime
    end: datetime
    title: str
    location: Optional[str] = None
    confirmed: bool = False
    description: Optional[str] = None
    uid: str = ""


def filter_occurrences(definition, window):
    """Yield the occurrences of ``definition`` starting inside ``window``.

    The definition's iterator is chronological, so consumption stops at the
    first start at or after ``window.range_end``.
    """
    range_start = window.range_start
    range_end = window.range_end
    for start, end in definition.occurrences(range_start):
        if start >= range_end:
            break
        if start < range_start:
            continue
        yield Occurrence(
            start=start,
            end=end,
            title=definition.summary,
            location=definition.location,
            confirmed=definition.confirmed,
            description=definition.description,
            uid=definition.uid,
        )


def collect_occurrences(definitions, window) -> List[Occurrence]:
    occurrences = []
    for definition in definitions:
        occurrences.extend(filter_occurrences(definition, window))
    logger.debug(
        "Collected %d occurrences from %d definitions between %s and %s",
        len(occurrences),
        len(definitions),
        window.range_start.isoformat(),
        window.range_end.isoformat(),
    )
    return occurrences
