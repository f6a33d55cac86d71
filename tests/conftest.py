from datetime import date, datetime, timedelta, timezone

import pytest

from plancal.window import Occurrence, VisibleWindow

SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//plantrack//plantrack version 1.0//EN
BEGIN:VEVENT
UID:standup
DTSTAMP:20261001T000000Z
DTSTART:20261019T090000Z
DTEND:20261019T093000Z
RRULE:FREQ=DAILY
SUMMARY:Standup
STATUS:CONFIRMED
LOCATION:Office
END:VEVENT
BEGIN:VEVENT
UID:review
DTSTAMP:20261001T000000Z
DTSTART:20261020T140000Z
DTEND:20261020T150000Z
SUMMARY:Review
STATUS:tentative
LOCATION:Lab
DESCRIPTION:bring notes
END:VEVENT
BEGIN:VEVENT
UID:far-away
DTSTAMP:20261001T000000Z
DTSTART:20261201T100000Z
DTEND:20261201T110000Z
SUMMARY:Far away
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def sample_ics():
    return SAMPLE_ICS.replace("\n", "\r\n")


@pytest.fixture
def window():
    """Seven days from Sunday 2026-10-18, 06:00-22:00 UTC."""
    return VisibleWindow(
        start_date=date(2026, 10, 18),
        num_days=7,
        start_hour=6,
        end_hour=22,
        tzinfo=timezone.utc,
    )


@pytest.fixture
def make_occurrence():
    def _make(start, end, title="Busy", confirmed=True, location=None):
        return Occurrence(start=start, end=end, title=title, location=location, confirmed=confirmed)

    return _make


@pytest.fixture
def at():
    """Build a UTC instant on 2026-10-19 (a Monday) from hour and minute."""

    def _at(hour, minute=0, day_offset=0):
        base = datetime(2026, 10, 19, tzinfo=timezone.utc) + timedelta(days=day_offset)
        return base + timedelta(hours=hour, minutes=minute)

    return _at


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANCAL_ENV_FILE", str(tmp_path / ".env"))
    monkeypatch.delenv("PLANCAL_FEED_URL", raising=False)
    monkeypatch.delenv("PLANCAL_TZ", raising=False)
    monkeypatch.delenv("PLANCAL_CONFIG", raising=False)
