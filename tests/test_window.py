from datetime import date, datetime, timedelta, timezone

import pytest

from plancal.errors import ConfigError
from plancal.window import VisibleWindow, collect_occurrences, filter_occurrences


class FakeDefinition:
    """Definition whose occurrence stream records how far it was consumed."""

    def __init__(self, starts, summary="Block", status=None, duration=timedelta(hours=1)):
        self.uid = summary.lower()
        self.summary = summary
        self.location = "Somewhere"
        self.description = None
        self.status = status
        self._starts = starts
        self._duration = duration
        self.consumed = 0

    @property
    def confirmed(self):
        return (self.status or "").upper() == "CONFIRMED"

    def occurrences(self, cursor):
        for start in self._starts:
            self.consumed += 1
            yield start, start + self._duration


def utc(day, hour=9):
    return datetime(2026, 10, day, hour, tzinfo=timezone.utc)


class TestVisibleWindow:
    def test_range_is_midnight_to_midnight(self, window):
        assert window.range_start == datetime(2026, 10, 18, tzinfo=timezone.utc)
        assert window.range_end == datetime(2026, 10, 25, tzinfo=timezone.utc)
        assert window.dates[0] == date(2026, 10, 18)
        assert len(window.dates) == 7

    def test_hour_bounds_in_minutes(self, window):
        assert (window.start_minute, window.end_minute, window.hours) == (360, 1320, 16)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"num_days": 0},
            {"start_hour": 10, "end_hour": 10},
            {"start_hour": -1},
            {"end_hour": 25},
        ],
    )
    def test_invalid_windows_are_rejected(self, kwargs):
        with pytest.raises(ConfigError):
            VisibleWindow(start_date=date(2026, 10, 18), **kwargs)


class TestFilterOccurrences:
    def test_keeps_only_starts_inside_window(self, window):
        definition = FakeDefinition([utc(17), utc(18, 0), utc(20), utc(24, 23), utc(25, 0), utc(26)])
        starts = [occ.start for occ in filter_occurrences(definition, window)]
        assert starts == [utc(18, 0), utc(20), utc(24, 23)]

    def test_stops_consuming_at_first_start_past_window(self, window):
        definition = FakeDefinition([utc(19), utc(25, 0), utc(26), utc(27)])
        list(filter_occurrences(definition, window))
        assert definition.consumed == 2

    def test_unbounded_recurrence_terminates(self, window):
        def daily():
            start = utc(1)
            while True:
                yield start
                start += timedelta(days=1)

        definition = FakeDefinition(daily())
        result = list(filter_occurrences(definition, window))
        assert len(result) == 7
        assert definition.consumed == 25

    def test_copies_definition_fields(self, window):
        definition = FakeDefinition([utc(19)], summary="Client call", status="confirmed")
        (occurrence,) = filter_occurrences(definition, window)
        assert occurrence.title == "Client call"
        assert occurrence.location == "Somewhere"
        assert occurrence.confirmed is True
        assert occurrence.end == utc(19) + timedelta(hours=1)

    def test_occurrence_ending_after_window_is_kept(self, window):
        definition = FakeDefinition([utc(24, 22)], duration=timedelta(hours=5))
        (occurrence,) = filter_occurrences(definition, window)
        assert occurrence.end > window.range_end

    @pytest.mark.parametrize("status", ["TENTATIVE", None, "CANCELLED"])
    def test_non_confirmed_statuses(self, window, status):
        (occurrence,) = filter_occurrences(FakeDefinition([utc(19)], status=status), window)
        assert occurrence.confirmed is False


class TestCollectOccurrences:
    def test_keeps_document_order_across_definitions(self, window):
        late = FakeDefinition([utc(22)], summary="Late")
        early = FakeDefinition([utc(19)], summary="Early")
        titles = [occ.title for occ in collect_occurrences([late, early], window)]
        assert titles == ["Late", "Early"]
