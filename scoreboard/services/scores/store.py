"""Storage engines behind the score ledger.

The ledger needs four primitives from storage: a point read, an atomic
increment of an existing record, an insert-if-absent (a compare-and-set
keyed by identity and version), and a sorted top-N query. Both engines
return immutable ``ScoreRecord`` values, never live rows, so callers
cannot observe half-applied updates.
"""

from abc import ABC, abstractmethod
import logging
import threading
import time
from typing import Dict, List, Optional

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import InvalidInput, StorageUnavailable
from .records import MAX_TOTAL_SCORE, ScoreRecord


def ranking_key(record: ScoreRecord):
    """Accumulated score descending, then identity ascending."""
    return (-record.accumulated_score, record.identity)


def _overflow(identity: str) -> InvalidInput:
    return InvalidInput(f"accumulated score for '{identity}' would exceed {MAX_TOTAL_SCORE}")


class ScoreStore(ABC):
    """Interface every storage engine implements."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise StorageUnavailable('score store is closed')

    @abstractmethod
    def get(self, identity: str) -> Optional[ScoreRecord]:
        ...

    @abstractmethod
    def increment(self, identity: str, score: int) -> Optional[ScoreRecord]:
        """Add ``score`` to an existing record in one atomic step.

        Returns the committed record, or None when ``identity`` has no
        record yet. Raises ``InvalidInput`` if the total would overflow.
        """

    @abstractmethod
    def compare_and_set(self, identity: str, expected_version: Optional[int], record: ScoreRecord) -> bool:
        """Write ``record`` only if the stored version is still ``expected_version``.

        ``expected_version=None`` means insert only if no record exists.
        Returns False when another writer got there first.
        """

    @abstractmethod
    def top_n(self, n: int) -> List[ScoreRecord]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...


class MemoryScoreStore(ScoreStore):
    """Process-local engine. Each primitive holds one short lock."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self._records: Dict[str, ScoreRecord] = {}
        self._lock = threading.Lock()

    def get(self, identity):
        self._ensure_open()
        with self._lock:
            return self._records.get(identity)

    def increment(self, identity, score):
        self._ensure_open()
        with self._lock:
            current = self._records.get(identity)
            if current is None:
                return None
            if current.accumulated_score > MAX_TOTAL_SCORE - score:
                raise _overflow(identity)
            updated = current.apply(score)
            self._records[identity] = updated
            return updated

    def compare_and_set(self, identity, expected_version, record):
        self._ensure_open()
        with self._lock:
            current = self._records.get(identity)
            if expected_version is None:
                if current is not None:
                    return False
            elif current is None or current.version != expected_version:
                return False
            self._records[identity] = record
            return True

    def top_n(self, n):
        self._ensure_open()
        with self._lock:
            snapshot = list(self._records.values())
        snapshot.sort(key=ranking_key)
        return snapshot[:n]

    def count(self):
        self._ensure_open()
        with self._lock:
            return len(self._records)


class SqlScoreStore(ScoreStore):
    """Engine over the ``score_record`` table via Flask-SQLAlchemy.

    Must be used inside an application context. Reads select plain columns
    so the session identity map never serves a stale version to a retry.
    """

    def __init__(self, database, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.db = database

    def close(self):
        try:
            self.db.session.remove()
        finally:
            super().close()

    @property
    def _row(self):
        from scoreboard.models import ScoreRow
        return ScoreRow

    def _fail(self, operation: str, exc: Exception) -> StorageUnavailable:
        self.db.session.rollback()
        self.logger.error(f"[storage-error] op={operation} error={exc}")
        return StorageUnavailable(f'storage unavailable during {operation}')

    def _columns(self):
        row = self._row
        return (row.identity, row.accumulated_score, row.highest_score, row.version)

    @staticmethod
    def _to_record(result_row) -> ScoreRecord:
        return ScoreRecord(
            identity=result_row.identity,
            accumulated_score=int(result_row.accumulated_score),
            highest_score=int(result_row.highest_score),
            version=int(result_row.version),
        )

    def _select_one(self, identity):
        return self.db.session.execute(
            select(*self._columns()).where(self._row.identity == identity)
        ).first()

    def get(self, identity):
        self._ensure_open()
        try:
            found = self._select_one(identity)
            # End the read transaction so a retry sees fresh commits
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('get', exc) from exc
        return self._to_record(found) if found is not None else None

    def increment(self, identity, score):
        self._ensure_open()
        row = self._row
        stmt = (
            update(row)
            .where(row.identity == identity, row.accumulated_score <= MAX_TOTAL_SCORE - score)
            .values(
                accumulated_score=row.accumulated_score + score,
                highest_score=case((row.highest_score < score, score), else_=row.highest_score),
                version=row.version + 1,
                updated_at=time.time(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            if self.db.engine.dialect.update_returning:
                found = self.db.session.execute(stmt.returning(*self._columns())).first()
            else:
                # The row stays write-locked until commit, so this read is our own write
                result = self.db.session.execute(stmt)
                found = self._select_one(identity) if result.rowcount == 1 else None
            if found is None:
                exists = self._select_one(identity) is not None
                self.db.session.rollback()
                if exists:
                    raise _overflow(identity)
                return None
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('increment', exc) from exc
        return self._to_record(found)

    def compare_and_set(self, identity, expected_version, record):
        self._ensure_open()
        if expected_version is None:
            return self._insert_if_absent(identity, record)
        row = self._row
        try:
            result = self.db.session.execute(
                update(row)
                .where(row.identity == identity, row.version == expected_version)
                .values(
                    accumulated_score=record.accumulated_score,
                    highest_score=record.highest_score,
                    version=record.version,
                    updated_at=time.time(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.session.rollback()
                return False
            self.db.session.commit()
            return True
        except SQLAlchemyError as exc:
            raise self._fail('compare_and_set', exc) from exc

    def _insert_if_absent(self, identity, record):
        now = time.time()
        try:
            self.db.session.execute(
                insert(self._row).values(
                    identity=identity,
                    accumulated_score=record.accumulated_score,
                    highest_score=record.highest_score,
                    version=record.version,
                    created_at=now,
                    updated_at=now,
                )
            )
            self.db.session.commit()
            return True
        except IntegrityError as exc:
            self.db.session.rollback()
            # Only a row that now exists means a concurrent first submission won
            try:
                taken = self._select_one(identity) is not None
                self.db.session.commit()
            except SQLAlchemyError as reread_exc:
                raise self._fail('insert', reread_exc) from reread_exc
            if taken:
                return False
            raise self._fail('insert', exc) from exc
        except SQLAlchemyError as exc:
            raise self._fail('insert', exc) from exc

    def top_n(self, n):
        self._ensure_open()
        row = self._row
        try:
            rows = self.db.session.execute(
                select(*self._columns())
                .order_by(row.accumulated_score.desc(), row.identity.asc())
                .limit(n)
            ).all()
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('top_n', exc) from exc
        return [self._to_record(r) for r in rows]

    def count(self):
        self._ensure_open()
        try:
            total = self.db.session.execute(select(func.count()).select_from(self._row)).scalar_one()
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('count', exc) from exc
        return int(total)
