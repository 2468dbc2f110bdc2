"""
Commit helpers for imports: single-row commit units and buffered batch writes.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from atm_logistics.services.import_report import RowOutcome, StageReport

logger = logging.getLogger(__name__)


@contextmanager
def commit_unit(db: Session) -> Iterator[Session]:
    """Commit everything written inside the block, or roll it all back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


@dataclass
class _Pending:
    entity: Any
    row_number: int
    key: Optional[str]
    message: Optional[str]


class BatchWriter:
    """
    Buffers new entities and inserts them in groups of ``batch_size``.

    Buffered entities stay out of the session until flushed, so a per-row
    rollback elsewhere never discards them. When a group fails to commit it is
    rolled back and retried one entity at a time; only the entities that still
    fail are reported as errors.
    """

    def __init__(self, db: Session, batch_size: int, label: str, report: Optional[StageReport] = None):
        self.db = db
        self.batch_size = max(1, batch_size)
        self.label = label
        self.report = report
        self.pending: List[_Pending] = []
        self.written = 0
        self.failed = 0

    def __len__(self) -> int:
        return len(self.pending)

    def add(self, entity: Any, row_number: int, key: Optional[str] = None, message: Optional[str] = None) -> None:
        self.pending.append(_Pending(entity, row_number, key, message))
        if len(self.pending) >= self.batch_size:
            self.flush()

    def find(self, predicate: Callable[[Any], bool]) -> Optional[Any]:
        for item in self.pending:
            if predicate(item.entity):
                return item.entity
        return None

    def _record(self, item: _Pending, outcome: RowOutcome, message: Optional[str]) -> None:
        if self.report is not None:
            self.report.record(item.row_number, outcome, key=item.key, message=message)

    def flush(self) -> None:
        if not self.pending:
            return
        items, self.pending = self.pending, []
        try:
            self.db.add_all([item.entity for item in items])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "Batch insert of %d %s failed, retrying one by one: %s", len(items), self.label, e
            )
            self._flush_individually(items)
            return
        for item in items:
            self._record(item, RowOutcome.CREATED, item.message)
        self.written += len(items)
        logger.debug("Committed batch of %d %s", len(items), self.label)

    def _flush_individually(self, items: List[_Pending]) -> None:
        for item in items:
            try:
                self.db.add(item.entity)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                self.failed += 1
                logger.error("Row %d: failed to insert %s: %s", item.row_number, self.label, e)
                self._record(item, RowOutcome.ERROR, f"Failed to save {self.label}: {e}")
                continue
            self.written += 1
            self._record(item, RowOutcome.CREATED, item.message)
