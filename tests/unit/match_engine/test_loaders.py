#!/usr/bin/env python3
"""
Tests for row assembly in the match data loaders.
"""

import json
import unittest
from datetime import date
from unittest.mock import MagicMock

from match_engine.loaders import (
    DESCRIPTION_MAX_CHARS,
    SqlMatchDataSource,
    build_student_data,
    filter_transfers_for_position,
)
from match_engine.types import AthleticTransferSkill


def _mock_session(first=None, rows=None):
    session = MagicMock()
    mappings = session.execute.return_value.mappings.return_value
    mappings.first.return_value = first
    mappings.all.return_value = rows or []
    return session


class TestBuildStudentData(unittest.TestCase):

    def setUp(self):
        self.user = {
            'id': 42,
            'tenant_id': 'tenant-a',
            'gpa': '3.7',
            'public_data': json.dumps({'position': 'Goalkeeper', 'hoursPerWeek': 12}),
            'created_at': None,
        }

    def test_rates_from_application_history(self):
        print("\n🧑‍🎓 build_student_data: completion rate")
        applications = [
            {'listing_id': 'a', 'status': 'completed', 'category': 'Data'},
            {'listing_id': 'b', 'status': 'accepted', 'category': 'Data'},
            {'listing_id': 'c', 'status': 'completed', 'category': 'Design'},
            {'listing_id': 'd', 'status': 'rejected', 'category': 'Data'},
        ]

        student = build_student_data(self.user, [], [], applications, concurrent_count=1)

        self.assertAlmostEqual(student.completion_rate, 2 / 3)
        self.assertEqual(student.on_time_rate, student.completion_rate)
        self.assertEqual(len(student.application_history), 4)
        self.assertEqual(student.active_concurrent_listings, 1)
        print(f"  ✓ completion_rate={student.completion_rate:.2f}")

    def test_no_accepted_applications(self):
        student = build_student_data(self.user, [], [], [{'listing_id': 'a', 'status': 'pending'}])
        self.assertEqual(student.completion_rate, 0.0)

    def test_profile_fields(self):
        skills = [{'name': 'Python', 'category': None, 'proficiency_level': None}]

        student = build_student_data(self.user, skills, [], [], avg_rating=4.5, rating_count=3)

        self.assertEqual(student.id, '42')
        self.assertEqual(student.position, 'Goalkeeper')
        self.assertEqual(student.hours_per_week, 12.0)
        self.assertEqual(student.skills[0].category, 'General')
        self.assertEqual(student.skills[0].proficiency_level, 3)
        self.assertEqual(student.avg_rating, 4.5)

    def test_default_hours(self):
        self.user['public_data'] = None
        student = build_student_data(self.user, [], [], [])
        self.assertEqual(student.hours_per_week, 20.0)
        self.assertIsNone(student.position)

    def test_schedule_json_columns(self):
        schedule = {
            'id': 'sched-1',
            'schedule_type': 'sport',
            'sport_name': 'Soccer',
            'start_month': 8,
            'end_month': 11,
            'practice_hours_per_week': '15',
            'competition_hours_per_week': 5,
            'travel_days_per_month': 4,
            'intensity_level': 4,
            'custom_blocks': json.dumps([{'day': 'monday', 'start_time': '09:00', 'end_time': '11:00'}]),
            'travel_conflicts': [
                {'start_date': '2025-10-01', 'end_date': '2025-10-05', 'reason': 'Tournament'},
                {'start_date': None, 'end_date': '2025-10-05'},
            ],
            'is_active': True,
        }

        student = build_student_data(self.user, [], [schedule], [])

        sched = student.schedules[0]
        self.assertEqual(student.sport_name, 'Soccer')
        self.assertEqual(sched.weekly_sport_hours, 20.0)
        self.assertEqual(sched.custom_blocks[0].day, 'monday')
        self.assertEqual(len(sched.travel_conflicts), 1)
        self.assertEqual(sched.travel_conflicts[0].start_date, date(2025, 10, 1))

    def test_malformed_json_is_ignored(self):
        schedule = {'id': 'sched-2', 'schedule_type': 'custom', 'custom_blocks': '{not json'}
        student = build_student_data(self.user, [], [schedule], [])
        self.assertEqual(student.schedules[0].custom_blocks, [])


class TestTransferFiltering(unittest.TestCase):

    def setUp(self):
        self.transfers = [
            AthleticTransferSkill('Leadership', 0.9, 'Soccer', None),
            AthleticTransferSkill('Risk Assessment', 0.7, 'Soccer', 'Goalkeeper'),
            AthleticTransferSkill('Strategy', 0.6, 'Soccer', 'Midfielder'),
        ]

    def test_position_keeps_sport_wide_and_matching(self):
        kept = filter_transfers_for_position(self.transfers, 'goalkeeper')
        self.assertEqual([t.professional_skill for t in kept], ['Leadership', 'Risk Assessment'])

    def test_unknown_position_keeps_all(self):
        self.assertEqual(len(filter_transfers_for_position(self.transfers, None)), 3)


class TestSqlMatchDataSource(unittest.TestCase):

    def test_missing_student(self):
        source = SqlMatchDataSource(_mock_session(first=None))
        self.assertIsNone(source.load_student('nobody'))

    def test_listing_row(self):
        row = {
            'id': 7, 'title': 'Analyst', 'description': 'x' * 900, 'category': 'Data',
            'skills_required': ['Python'], 'hours_per_week': 10, 'duration': '3 months',
            'start_date': '2025-06-01', 'end_date': None, 'remote_allowed': 1,
            'compensation': '$20/hr', 'is_paid': True, 'tenant_id': 'tenant-a',
            'author_id': 99, 'published_at': None, 'max_students': None,
            'students_accepted': None, 'company_name': 'Acme',
        }

        listing = SqlMatchDataSource(_mock_session(first=row)).load_listing('7')

        self.assertEqual(listing.id, '7')
        self.assertEqual(len(listing.description), DESCRIPTION_MAX_CHARS)
        self.assertEqual(listing.start_date, date(2025, 6, 1))
        self.assertEqual(listing.author_id, '99')
        self.assertTrue(listing.remote_allowed)
        self.assertEqual(listing.max_students, 1)

    def test_transfers_skip_query_without_sport(self):
        session = _mock_session()
        source = SqlMatchDataSource(session)

        student = build_student_data({'id': 1}, [], [], [])

        self.assertEqual(source.load_athletic_transfers(student), [])
        session.execute.assert_not_called()

    def test_candidate_ids(self):
        session = _mock_session(rows=[{'id': 1}, {'id': 2}])
        ids = SqlMatchDataSource(session).list_candidate_listing_ids('tenant-a', limit=5)
        self.assertEqual(ids, ['1', '2'])
