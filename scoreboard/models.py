from scoreboard import db
import time


class ScoreRow(db.Model):
    """Persistent layout of a score record; one row per identity."""
    __tablename__ = 'score_record'
    identity = db.Column(db.String(128), primary_key=True)
    accumulated_score = db.Column(db.BigInteger, nullable=False, default=0)
    highest_score = db.Column(db.BigInteger, nullable=False, default=0)
    # Bumped on every committed update; the ledger compares against it
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.Float, nullable=False, default=time.time)
    updated_at = db.Column(db.Float, nullable=False, default=time.time)

    __table_args__ = (
        db.CheckConstraint('accumulated_score >= 0', name='ck_score_record_accumulated_non_negative'),
        db.CheckConstraint('highest_score >= 0', name='ck_score_record_highest_non_negative'),
        db.Index('ix_score_record_ranking', accumulated_score.desc(), identity),
    )
