#!/usr/bin/env python3
"""
Test suite for the network affinity signal.
"""

import unittest
from datetime import timedelta

from match_engine.signals.network import score_freshness, score_network_affinity
from tests.mocks.match_mocks import FIXED_NOW, make_history, make_listing, make_student


class TestNetworkAffinity(unittest.TestCase):

    def test_same_tenant_fresh_listing(self):
        # tenant 100, familiarity 50, exclusivity 100, freshness 100
        result = score_network_affinity(make_student(), make_listing(), now=FIXED_NOW)
        self.assertTrue(result.details['same_tenant'])
        self.assertEqual(result.score, 90)

    def test_other_tenant_listing(self):
        result = score_network_affinity(make_student(), make_listing(tenant_id='tenant-b'), now=FIXED_NOW)
        self.assertFalse(result.details['same_tenant'])
        self.assertEqual(result.details['exclusivity_score'], 40)
        self.assertEqual(result.score, 54)

    def test_open_network_listing(self):
        result = score_network_affinity(make_student(), make_listing(tenant_id=None), now=FIXED_NOW)
        self.assertEqual(result.details['exclusivity_score'], 60)
        self.assertEqual(result.score, 58)

    def test_category_familiarity(self):
        student = make_student(application_history=make_history(['completed', 'accepted'], category='data'))
        result = score_network_affinity(student, make_listing(category='Data'), now=FIXED_NOW)
        self.assertEqual(result.details['prior_category_successes'], 2)
        self.assertEqual(result.details['familiarity_score'], 100)

    def test_freshness_decay(self):
        self.assertEqual(score_freshness(None), 50)
        self.assertEqual(score_freshness(7), 100)
        self.assertEqual(score_freshness(10), 85)
        self.assertEqual(score_freshness(45), 50)
        self.assertEqual(score_freshness(90), 30)

        stale_listing = make_listing(published_at=FIXED_NOW - timedelta(days=90))
        result = score_network_affinity(make_student(), stale_listing, now=FIXED_NOW)
        self.assertEqual(result.details['freshness_score'], 30)

    def test_deterministic_for_fixed_now(self):
        a = score_network_affinity(make_student(), make_listing(), now=FIXED_NOW)
        b = score_network_affinity(make_student(), make_listing(), now=FIXED_NOW)
        self.assertEqual(a, b)


if __name__ == '__main__':
    unittest.main()
