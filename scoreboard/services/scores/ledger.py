import logging
import random
import time
from typing import Optional

from .errors import NotFound, StorageUnavailable
from .records import ScoreRecord, validate_identity, validate_score
from .store import ScoreStore

DEFAULT_MAX_RETRIES = 16
DEFAULT_RETRY_BACKOFF = 0.005
MAX_RETRY_BACKOFF = 0.1


class ScoreLedger:
    """Applies score submissions and answers point lookups.

    An existing record is updated by the store's atomic increment, so
    concurrent submissions for one identity serialize inside storage and
    never conflict. Only the first submission for an identity can race:
    it is an insert-if-absent, and the loser goes back around the loop,
    where its increment then lands on the winner's row. Retries are
    bounded and jittered; different identities never contend.

    The ledger does not deduplicate. Re-sending the same logical
    submission counts it twice; exactly-once delivery belongs to the
    caller.
    """

    def __init__(
        self,
        store: ScoreStore,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_score: Optional[int] = None,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        logger: Optional[logging.Logger] = None,
    ):
        if max_retries < 1:
            raise ValueError('max_retries must be at least 1')
        self.store = store
        self.max_retries = max_retries
        self.max_score = max_score
        self.retry_backoff = retry_backoff
        self.logger = logger or logging.getLogger(__name__)

    def submit(self, identity: str, score: int) -> ScoreRecord:
        """Add ``score`` to ``identity``'s record and return the committed result.

        Creates the record on first submission. Raises ``InvalidInput``
        before anything is written (including when the total would
        overflow), and ``StorageUnavailable`` when storage fails or the
        retry budget runs out; in both cases nothing was applied.
        """
        identity = validate_identity(identity)
        score = validate_score(score, self.max_score)

        for attempt in range(1, self.max_retries + 1):
            updated = self.store.increment(identity, score)
            if updated is None:
                first = ScoreRecord.first(identity, score)
                if self.store.compare_and_set(identity, None, first):
                    updated = first

            if updated is not None:
                self.logger.info(
                    f"[score-submit] identity={identity} score={score} "
                    f"accumulated={updated.accumulated_score} highest={updated.highest_score} attempt={attempt}"
                )
                return updated

            self.logger.debug(f"[score-insert-retry] identity={identity} attempt={attempt}")
            self._backoff(attempt)

        self.logger.warning(f"[score-retry-exhausted] identity={identity} score={score} attempts={self.max_retries}")
        raise StorageUnavailable(
            f"Could not apply score for '{identity}' after {self.max_retries} attempts"
        )

    def _backoff(self, attempt: int) -> None:
        if self.retry_backoff <= 0 or attempt >= self.max_retries:
            return
        ceiling = min(MAX_RETRY_BACKOFF, self.retry_backoff * 2 ** (attempt - 1))
        time.sleep(random.uniform(0, ceiling))

    def get_score(self, identity: str) -> ScoreRecord:
        identity = validate_identity(identity)
        record = self.store.get(identity)
        if record is None:
            raise NotFound(identity)
        return record
