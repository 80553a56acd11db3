#!/usr/bin/env python3
"""
Test suite for the skills alignment signal.
"""

import unittest

from match_engine.signals.skills import proficiency_score, score_skills_alignment
from match_engine.types import AthleticTransferSkill, StudentSkill
from tests.mocks.match_mocks import make_listing, make_student


class TestSkillsAlignment(unittest.TestCase):

    def test_partial_direct_match(self):
        """Student knows SQL, listing wants SQL and Excel."""
        print("\n🧩 Skills: one of two required skills")
        student = make_student(skills=[StudentSkill(name='SQL', category='Technology', proficiency_level=3)])
        listing = make_listing(skills_required=['SQL', 'Excel'])

        result = score_skills_alignment(student, listing)

        self.assertEqual(result.details['direct_match_ratio'], 0.5)
        self.assertEqual(result.details['matched_skills'], ['sql'])
        self.assertEqual(result.details['missing_skills'], ['excel'])
        print(f"  ✓ score={result.score}, matched={result.details['matched_skills']}")

    def test_matching_ignores_case_and_whitespace(self):
        student = make_student(skills=[StudentSkill(name='  Python ')])
        result = score_skills_alignment(student, make_listing(skills_required=['PYTHON']))
        self.assertEqual(result.details['direct_match_ratio'], 1.0)

    def test_full_match_score(self):
        # direct 100, proficiency mean(93.3, 70) -> 82, category 25
        result = score_skills_alignment(make_student(), make_listing(skills_required=['Python', 'SQL']))
        self.assertEqual(result.details['proficiency_score'], 82)
        self.assertEqual(result.score, 74)

    def test_no_required_skills(self):
        listing = make_listing(skills_required=[])
        self.assertEqual(score_skills_alignment(make_student(), listing).score, 50)
        self.assertEqual(score_skills_alignment(make_student(skills=[]), listing).score, 30)

    def test_athletic_transfers_credit_missing_skills(self):
        transfers = [
            AthleticTransferSkill('Leadership', 0.8, 'Soccer', 'Captain', 'Soft Skills'),
            AthleticTransferSkill('Leadership', 0.5, 'Soccer', None, 'Soft Skills'),
            AthleticTransferSkill('Teamwork', 0.6, 'Soccer', None, 'Soft Skills'),
            AthleticTransferSkill('Python', 0.9, 'Soccer', None, 'Technology'),
        ]
        listing = make_listing(skills_required=['Python', 'Leadership', 'Teamwork'])

        result = score_skills_alignment(make_student(), listing, transfers)

        # strongest per missing skill: 0.8 + 0.6 over 2 missing -> 0.7 * 60
        self.assertEqual(result.details['transfer_score'], 42)
        names = sorted(t['professional_skill'] for t in result.details['athletic_transfer_skills'])
        self.assertEqual(names, ['Leadership', 'Teamwork'])
        # Technology overlaps the student's categories
        self.assertEqual(result.details['category_score'], 50)

    def test_transfers_raise_score(self):
        listing = make_listing(skills_required=['Python', 'Leadership'])
        without = score_skills_alignment(make_student(), listing)
        with_transfer = score_skills_alignment(
            make_student(), listing,
            [AthleticTransferSkill('Leadership', 1.0, 'Soccer', None, 'Soft Skills')]
        )
        self.assertGreater(with_transfer.score, without.score)

    def test_proficiency_caps_at_100(self):
        self.assertEqual(proficiency_score(3), 70)
        self.assertEqual(proficiency_score(5), 100)


if __name__ == '__main__':
    unittest.main()
