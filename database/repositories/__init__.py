from database.repositories.base import BaseRepository
from database.repositories.match_score import MatchScoreRepository
from database.repositories.engine_config import EngineConfigRepository

__all__ = [
    'BaseRepository',
    'MatchScoreRepository',
    'EngineConfigRepository',
]
