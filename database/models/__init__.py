from .base import Base
from .match import MatchScore, MatchScoreHistory
from .queue import RecomputationQueueEntry
from .settings import TenantEngineConfig, CorporateAttractivenessScore

__all__ = [
    'Base',
    'MatchScore',
    'MatchScoreHistory',
    'RecomputationQueueEntry',
    'TenantEngineConfig',
    'CorporateAttractivenessScore',
]
