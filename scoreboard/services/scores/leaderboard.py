import logging
from typing import List, Optional

from .records import LeaderboardEntry, validate_size
from .store import ScoreStore, ranking_key

DEFAULT_SIZE = 3


class LeaderboardView:
    """Top-N ranking over the ledger's records by accumulated score.

    Computed on demand from storage. Ties on accumulated score are broken
    by identity in ascending order, whatever order the store returns.

    Consistency is eventual: a read racing a submission may or may not
    include it, but never reflects less than what was committed before the
    read started, and never shows a half-applied record.
    """

    def __init__(
        self,
        store: ScoreStore,
        default_size: int = DEFAULT_SIZE,
        max_size: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.max_size = max_size
        self.default_size = validate_size(default_size, max_size)
        self.logger = logger or logging.getLogger(__name__)

    def top_scores(self, n: Optional[int] = None) -> List[LeaderboardEntry]:
        if n is None:
            n = self.default_size
        n = validate_size(n, self.max_size)
        records = sorted(self.store.top_n(n), key=ranking_key)[:n]
        self.logger.debug(f"[leaderboard] size={n} returned={len(records)}")
        return [LeaderboardEntry(r.identity, r.accumulated_score) for r in records]
