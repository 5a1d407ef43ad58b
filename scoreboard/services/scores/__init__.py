"""Score domain services: the ledger, the leaderboard and their storage.

This package holds the scoring rules and the ranking query. HTTP routes,
socket handlers and CLI commands import from here and stay free of
aggregation logic.
"""

from .errors import ScoreboardError, InvalidInput, NotFound, StorageUnavailable
from .records import ScoreRecord, LeaderboardEntry
from .store import ScoreStore, MemoryScoreStore, SqlScoreStore
from .ledger import ScoreLedger
from .leaderboard import LeaderboardView

__all__ = [
    'ScoreboardError',
    'InvalidInput',
    'NotFound',
    'StorageUnavailable',
    'ScoreRecord',
    'LeaderboardEntry',
    'ScoreStore',
    'MemoryScoreStore',
    'SqlScoreStore',
    'ScoreLedger',
    'LeaderboardView',
]
