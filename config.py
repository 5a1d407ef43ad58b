import os


def _optional_int(name):
    raw = os.environ.get(name)
    return int(raw) if raw else None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///scoreboard.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Storage engine backing the ledger: 'sql' or 'memory'
    SCORE_STORE = os.environ.get('SCORE_STORE', 'sql')
    # Leaderboard size when the caller does not pass one, and the hard cap
    LEADERBOARD_DEFAULT_SIZE = int(os.environ.get('LEADERBOARD_DEFAULT_SIZE', '3'))
    LEADERBOARD_MAX_SIZE = int(os.environ.get('LEADERBOARD_MAX_SIZE', '100'))
    # Optimistic update attempts before a submission fails as storage unavailable
    SCORE_CAS_MAX_RETRIES = int(os.environ.get('SCORE_CAS_MAX_RETRIES', '16'))
    # Upper bound of the first jittered pause between retries (ms). 0 disables.
    SCORE_RETRY_BACKOFF_MS = int(os.environ.get('SCORE_RETRY_BACKOFF_MS', '5'))
    # Optional per-submission ceiling. None disables.
    MAX_SCORE_PER_SUBMISSION = _optional_int('MAX_SCORE_PER_SUBMISSION')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
