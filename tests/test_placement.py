import pytest

from plancal.grid import build_grid
from plancal.placement import clip_to_hours, day_travel, place_occurrence, place_occurrences

WIN_START = 6 * 60
WIN_END = 22 * 60


class TestClipToHours:
    def test_event_starting_before_window_is_head_clipped(self):
        # 05:00-07:30
        assert clip_to_hours(300, 450, WIN_START, WIN_END) == (0, 90)

    def test_event_ending_after_window_is_tail_clipped(self):
        # 21:00-23:00
        assert clip_to_hours(1260, 1380, WIN_START, WIN_END) == (900, 60)

    def test_event_after_window_is_discarded(self):
        # 23:00-23:30
        assert clip_to_hours(1380, 1410, WIN_START, WIN_END) is None

    def test_event_before_window_is_discarded(self):
        assert clip_to_hours(240, 360, WIN_START, WIN_END) is None

    def test_event_spanning_window_uses_tail_clip_height(self):
        # 00:00-23:59: head clip gives 1079, tail clip overwrites with 960
        assert clip_to_hours(0, 1439, WIN_START, WIN_END) == (0, 960)

    def test_event_inside_window_is_unchanged(self):
        assert clip_to_hours(600, 690, WIN_START, WIN_END) == (240, 90)

    def test_zero_length_event_is_discarded(self):
        assert clip_to_hours(600, 600, WIN_START, WIN_END) is None

    def test_end_wrapping_to_earlier_clock_time_is_discarded(self):
        # 10:00 until 08:00 next day
        assert clip_to_hours(600, 480, WIN_START, WIN_END) is None

    @pytest.mark.parametrize("start_min", range(0, 1440, 45))
    @pytest.mark.parametrize("length", [1, 30, 90, 600, 1439])
    def test_placed_events_stay_inside_the_grid(self, start_min, length):
        end_min = min(1439, start_min + length)
        result = clip_to_hours(start_min, end_min, WIN_START, WIN_END)
        if result is None:
            return
        top, height = result
        assert top >= 0
        assert height > 0
        assert top + height <= WIN_END - WIN_START


class TestPlaceOccurrence:
    def test_scenario_a(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(5), at(7, 30)), window, now=None)
        assert (placed.top_offset_minutes, placed.height_minutes) == (0, 90)

    def test_scenario_b(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(21), at(23)), window, now=None)
        assert (placed.top_offset_minutes, placed.height_minutes) == (900, 60)

    def test_scenario_c(self, window, make_occurrence, at):
        assert place_occurrence(make_occurrence(at(23), at(23, 30)), window, now=None) is None

    def test_scenario_d(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(0), at(23, 59)), window, now=None)
        assert (placed.top_offset_minutes, placed.height_minutes) == (0, 960)

    def test_current_when_now_inside(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(14), at(15)), window, now=at(14, 30))
        assert placed.is_current is True

    def test_not_current_after_end(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(14), at(15)), window, now=at(15, 1))
        assert placed.is_current is False

    def test_current_includes_both_endpoints(self, window, make_occurrence, at):
        occurrence = make_occurrence(at(14), at(15))
        assert place_occurrence(occurrence, window, now=at(14)).is_current
        assert place_occurrence(occurrence, window, now=at(15)).is_current

    def test_current_uses_full_instants_not_clipped_range(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(21), at(23, 30)), window, now=at(23))
        assert placed.height_minutes == 60
        assert placed.is_current is True

    def test_badges(self, window, make_occurrence, at):
        now = at(12)
        assert place_occurrence(make_occurrence(at(8), at(9)), window, now).badge == "confirmed"
        assert place_occurrence(make_occurrence(at(8), at(9), confirmed=False), window, now).badge == "missed"
        assert place_occurrence(make_occurrence(at(13), at(14), confirmed=False), window, now).badge == "tentative"

    def test_labels_and_pixels(self, window, make_occurrence, at):
        placed = place_occurrence(make_occurrence(at(9, 15), at(10, 45)), window, now=None)
        assert placed.time_label == "09:15 - 10:45"
        assert placed.duration_label == "01:30h"
        assert placed.top(40) == pytest.approx(130.0)
        assert placed.height(40) == pytest.approx(60.0)


class TestPlaceOccurrences:
    def test_events_land_on_their_start_day_in_insertion_order(self, window, make_occurrence, at):
        columns = build_grid(window, now=None, row_height=40)
        occurrences = [
            make_occurrence(at(15), at(16), title="late"),
            make_occurrence(at(9), at(10), title="early"),
            make_occurrence(at(9, day_offset=1), at(10, day_offset=1), title="tuesday"),
            make_occurrence(at(23), at(23, 30), title="hidden"),
        ]
        place_occurrences(columns, occurrences, window, now=None)
        by_date = {column.date.isoformat(): [e.occurrence.title for e in column.events] for column in columns}
        assert by_date["2026-10-19"] == ["late", "early"]
        assert by_date["2026-10-20"] == ["tuesday"]
        assert sum(len(titles) for titles in by_date.values()) == 3

    def test_occurrence_outside_columns_is_ignored(self, window, make_occurrence, at):
        columns = build_grid(window, now=None, row_height=40)
        place_occurrences(columns, [make_occurrence(at(9, day_offset=30), at(10, day_offset=30))], window, None)
        assert all(not column.events for column in columns)

    def test_travel_route_collapses_repeated_locations(self, window, make_occurrence, at):
        columns = build_grid(window, now=None, row_height=40)
        occurrences = [
            make_occurrence(at(8), at(9), location="Home"),
            make_occurrence(at(9), at(10), location="Office"),
            make_occurrence(at(10), at(11), location="Office"),
            make_occurrence(at(11), at(12)),
            make_occurrence(at(13), at(14), location="Home"),
        ]
        place_occurrences(columns, occurrences, window, None)
        monday = next(c for c in columns if c.date.isoformat() == "2026-10-19")
        assert monday.travel == ["Home", "Office", "Home"]
        assert day_travel([]) == []
