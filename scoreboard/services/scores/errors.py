"""Exceptions raised by the score ledger and leaderboard.

Each carries the HTTP status the API layer answers with, so route code
never has to map exception types by hand.
"""


class ScoreboardError(Exception):
    """Base class for every error the score services raise."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'error': self.message}


class InvalidInput(ScoreboardError):
    """Malformed identity, score or leaderboard size. Not retryable."""

    status_code = 400


class NotFound(ScoreboardError):
    """No record exists for the requested identity."""

    status_code = 404

    def __init__(self, identity: str):
        super().__init__(f"No score recorded for '{identity}'")
        self.identity = identity


class StorageUnavailable(ScoreboardError):
    """The storage call failed, timed out, or optimistic retries ran out.

    No partial mutation is left behind; callers may retry the operation.
    """

    status_code = 503
