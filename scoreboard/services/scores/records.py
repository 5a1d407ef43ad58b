from dataclasses import dataclass
import math

from .errors import InvalidInput

MAX_IDENTITY_LENGTH = 128
# Largest value a BIGINT column holds
MAX_TOTAL_SCORE = 2 ** 63 - 1


@dataclass(frozen=True)
class ScoreRecord:
    """Aggregated scores for one identity.

    Instances are immutable; every committed submission produces a new
    record with a bumped ``version``.
    """
    identity: str
    accumulated_score: int
    highest_score: int
    version: int = 1

    def apply(self, score: int) -> 'ScoreRecord':
        """Return the record that results from adding one submission."""
        return ScoreRecord(
            identity=self.identity,
            accumulated_score=self.accumulated_score + score,
            highest_score=max(self.highest_score, score),
            version=self.version + 1,
        )

    @classmethod
    def first(cls, identity: str, score: int) -> 'ScoreRecord':
        return cls(identity=identity, accumulated_score=score, highest_score=score, version=1)

    def to_dict(self):
        return {
            'identity': self.identity,
            'accumulated_score': self.accumulated_score,
            'highest_score': self.highest_score,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    identity: str
    accumulated_score: int

    def to_dict(self, rank=None):
        data = {
            'identity': self.identity,
            'accumulated_score': self.accumulated_score,
        }
        if rank is not None:
            data = {'rank': rank, **data}
        return data


def validate_identity(identity) -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidInput('identity must be a non-empty string')
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise InvalidInput(f'identity must be at most {MAX_IDENTITY_LENGTH} characters')
    return identity


def validate_score(score, ceiling=None) -> int:
    # bool is an int subclass; True is not a score
    if isinstance(score, bool) or not isinstance(score, int):
        if isinstance(score, float) and not math.isfinite(score):
            raise InvalidInput('score must be finite')
        raise InvalidInput('score must be an integer')
    if score < 0:
        raise InvalidInput('score must be non-negative')
    if score > MAX_TOTAL_SCORE:
        raise InvalidInput(f'score must not exceed {MAX_TOTAL_SCORE}')
    if ceiling is not None and score > ceiling:
        raise InvalidInput(f'score must not exceed {ceiling}')
    return score


def validate_size(n, maximum=None) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidInput('n must be an integer')
    if n <= 0:
        raise InvalidInput('n must be a positive integer')
    if maximum is not None and n > maximum:
        raise InvalidInput(f'n must not exceed {maximum}')
    return n
