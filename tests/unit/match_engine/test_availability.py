import unittest
from datetime import date

from match_engine.availability import (
    calculate_available_hours,
    count_travel_conflicts,
    get_availability_windows,
    is_month_in_range,
    overlap_days,
    parse_time_to_hours,
)
from match_engine.types import CustomBlock, ScheduleEntry, TravelConflict
from tests.mocks.match_mocks import make_sport_schedule


class TestAvailabilityHelpers(unittest.TestCase):

    def test_month_range_wraps(self):
        self.assertTrue(is_month_in_range(9, 8, 11))
        self.assertTrue(is_month_in_range(1, 10, 2))
        self.assertFalse(is_month_in_range(5, 10, 2))

    def test_parse_time(self):
        self.assertEqual(parse_time_to_hours('09:30'), 9.5)
        self.assertEqual(parse_time_to_hours('14'), 14.0)
        self.assertEqual(parse_time_to_hours('xx:15'), 0.25)
        self.assertEqual(parse_time_to_hours(None), 0.0)

    def test_overlap_days(self):
        self.assertEqual(overlap_days(date(2025, 6, 1), date(2025, 6, 10), date(2025, 6, 5), date(2025, 6, 20)), 5.0)
        self.assertEqual(overlap_days(date(2025, 6, 1), date(2025, 6, 10), date(2025, 7, 1), date(2025, 7, 5)), 0.0)


class TestAvailableHours(unittest.TestCase):

    def test_no_commitments(self):
        self.assertEqual(calculate_available_hours([]), 40.0)

    def test_sport_and_academic_load(self):
        academic = ScheduleEntry(id='acad', schedule_type='academic', intensity_level=3)
        hours = calculate_available_hours([make_sport_schedule(), academic])
        # 40 - 20 sport - 15 academic
        self.assertEqual(hours, 5.0)

    def test_custom_blocks(self):
        custom = ScheduleEntry(
            id='custom',
            schedule_type='custom',
            custom_blocks=[CustomBlock('monday', '09:00', '12:00', 'Lab'), CustomBlock('friday', '12:00', '10:00')],
        )
        self.assertEqual(calculate_available_hours([custom]), 37.0)

    def test_never_negative(self):
        heavy = make_sport_schedule(practice_hours_per_week=50)
        self.assertEqual(calculate_available_hours([heavy]), 0.0)


class TestAvailabilityWindows(unittest.TestCase):

    def test_no_schedules_single_window(self):
        windows = get_availability_windows([], date(2025, 6, 1), date(2025, 9, 1))
        self.assertEqual(len(windows), 1)
        self.assertEqual(windows[0].available_hours_per_week, 40.0)

    def test_monthly_windows_with_season(self):
        windows = get_availability_windows([make_sport_schedule()], date(2025, 7, 1), date(2025, 9, 1))

        self.assertEqual([w.start_date for w in windows], [date(2025, 7, 1), date(2025, 8, 1)])
        self.assertEqual(windows[0].available_hours_per_week, 40.0)
        self.assertEqual(windows[1].available_hours_per_week, 20.0)
        self.assertEqual(windows[1].constraints, ['Soccer fall'])

    def test_invalid_range(self):
        self.assertEqual(get_availability_windows([], date(2025, 9, 1), date(2025, 6, 1)), [])

    def test_travel_conflict_days(self):
        sched = ScheduleEntry(
            id='s',
            travel_conflicts=[TravelConflict(date(2025, 6, 3), date(2025, 6, 6), 'Tournament')],
        )
        self.assertEqual(count_travel_conflicts([sched], date(2025, 6, 1), date(2025, 6, 30)), 3.0)


if __name__ == '__main__':
    unittest.main()
