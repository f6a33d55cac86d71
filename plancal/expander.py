"""Event definitions parsed from an ICS document.

Recurrence math is delegated to ``recurring_ical_events``; every definition
groups the master VEVENT with its RECURRENCE-ID overrides so that the
library can emit the definition's occurrences as one chronological stream.
"""

import logging
from datetime import date, datetime, time

from icalendar import Calendar
import recurring_ical_events

from .errors import ParseError

logger = logging.getLogger(__name__)


def normalize_datetime(dt, tzinfo):
    if isinstance(dt, datetime):
        if dt.tzinfo is None and tzinfo:
            return dt.replace(tzinfo=tzinfo)
        if tzinfo:
            return dt.astimezone(tzinfo)
        return dt
    if isinstance(dt, date):
        return datetime.combine(dt, time.min, tzinfo)
    return None


def _text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def occurrence_span(event, tzinfo):
    dtstart = event.get("dtstart")
    if not dtstart:
        return None
    start = normalize_datetime(dtstart.dt, tzinfo)
    if start is None:
        return None
    dtend = event.get("dtend")
    duration = event.get("duration")
    if dtend:
        end = normalize_datetime(dtend.dt, tzinfo)
    elif duration:
        end = start + duration.dt
    else:
        end = start
    return start, end


class EventDefinition:
    """One calendar entry, possibly recurring."""

    def __init__(self, uid, components, timezones=(), tzinfo=None):
        if not components:
            raise ValueError("EventDefinition needs at least one VEVENT")
        self.uid = uid
        self.tzinfo = tzinfo
        self._components = list(components)
        self._timezones = list(timezones)
        master = next((c for c in self._components if "RECURRENCE-ID" not in c), self._components[0])
        self.summary = _text(master.get("summary")) or "Untitled"
        self.location = _text(master.get("location"))
        self.description = _text(master.get("description"))
        self.status = _text(master.get("status"))

    def __repr__(self):
        return f"EventDefinition(uid={self.uid!r}, summary={self.summary!r})"

    @property
    def confirmed(self):
        return (self.status or "").upper() == "CONFIRMED"

    def _calendar(self):
        cal = Calendar()
        for component in self._timezones:
            cal.add_component(component)
        for component in self._components:
            cal.add_component(component)
        return cal

    def occurrences(self, cursor):
        """Yield ``(start, end)`` of every occurrence ending after ``cursor``.

        Occurrences come in chronological order of their start; the stream is
        lazy and unbounded for open-ended recurrence rules.
        """
        try:
            for event in recurring_ical_events.of(self._calendar()).after(cursor):
                span = occurrence_span(event, self.tzinfo)
                if span is not None:
                    yield span
        except ValueError as exc:
            raise ParseError(f"Cannot expand event {self.uid!r}: {exc}") from exc


def parse_definitions(ical_text, tzinfo=None):
    """Parse ``ical_text`` into event definitions in document order."""
    if isinstance(ical_text, bytes):
        ical_text = ical_text.decode("utf-8", errors="ignore")
    if not ical_text or not ical_text.strip():
        raise ParseError("Empty calendar document")
    try:
        cal = Calendar.from_ical(ical_text)
    except (ValueError, IndexError) as exc:
        raise ParseError(f"Malformed calendar document: {exc}") from exc
    if cal.name != "VCALENDAR":
        raise ParseError(f"Expected VCALENDAR, got {cal.name}")

    timezones = [c for c in cal.subcomponents if c.name == "VTIMEZONE"]
    groups = {}
    for idx, component in enumerate(cal.walk("VEVENT")):
        uid = _text(component.get("uid")) or f"anonymous-{idx}"
        groups.setdefault(uid, []).append(component)

    definitions = [
        EventDefinition(uid, components, timezones=timezones, tzinfo=tzinfo)
        for uid, components in groups.items()
    ]
    logger.debug("Parsed %d event definitions", len(definitions))
    return definitions
