"""
Signal calculators.

Each calculator is a pure function returning a SignalResult (0-100 plus details):

- temporal.py: schedule and hours fit
- skills.py: skill coverage, proficiency, athletic transfers
- sustainability.py: workload and burnout risk
- growth.py: stretch, category progression, GPA
- trust.py: reliability track record
- network.py: tenant affinity and listing freshness
"""

from match_engine.signals.temporal import score_temporal_fit
from match_engine.signals.skills import score_skills_alignment
from match_engine.signals.sustainability import score_sustainability
from match_engine.signals.growth import score_growth_trajectory
from match_engine.signals.trust import score_trust_reliability
from match_engine.signals.network import score_network_affinity

__all__ = [
    'score_temporal_fit',
    'score_skills_alignment',
    'score_sustainability',
    'score_growth_trajectory',
    'score_trust_reliability',
    'score_network_affinity',
]
