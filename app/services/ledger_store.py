from __future__ import annotations
import logging
import threading
from dataclasses import fields, replace
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.errors import ConcurrentUpdateError, LedgerExistsError, NotFoundError
from app.core.ledger import StageLedger
from app.db.models import WorkflowStageRecord

log = logging.getLogger(__name__)

_KEY_FIELDS = ("entity_type", "entity_id", "version")
LEDGER_COLUMNS = tuple(f.name for f in fields(StageLedger) if f.name not in _KEY_FIELDS)


class LedgerStore:
    """Key-value contract for stage ledgers.

    ``put`` is a compare-and-set on ``version``: the write only lands when the
    stored version still equals the ledger's, and the returned ledger carries
    the bumped version.
    """

    def get(self, entity_type: str, entity_id: str) -> Optional[StageLedger]:
        raise NotImplementedError

    def create(self, ledger: StageLedger) -> StageLedger:
        raise NotImplementedError

    def put(self, ledger: StageLedger) -> StageLedger:
        raise NotImplementedError

    def list(self, entity_type: Optional[str] = None, entity_id: Optional[str] = None) -> list[StageLedger]:
        raise NotImplementedError


def record_to_ledger(row: WorkflowStageRecord) -> StageLedger:
    values = {name: getattr(row, name) for name in LEDGER_COLUMNS}
    return StageLedger(entity_type=row.entity_type, entity_id=row.entity_id, version=row.version, **values)


class SqlLedgerStore(LedgerStore):
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, entity_type, entity_id):
        with self.session_factory() as db:
            row = db.execute(
                select(WorkflowStageRecord).where(
                    WorkflowStageRecord.entity_type == entity_type,
                    WorkflowStageRecord.entity_id == entity_id,
                )
            ).scalar_one_or_none()
            return record_to_ledger(row) if row else None

    def create(self, ledger):
        with self.session_factory() as db:
            row = WorkflowStageRecord(
                entity_type=ledger.entity_type,
                entity_id=ledger.entity_id,
                version=1,
                **{name: getattr(ledger, name) for name in LEDGER_COLUMNS},
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise LedgerExistsError(ledger.entity_type, ledger.entity_id)
        log.info("Workflow stage created", extra={"entity_type": ledger.entity_type, "entity_id": ledger.entity_id, "stage": ledger.current_stage.value})
        return replace(ledger, version=1)

    def put(self, ledger):
        values = {name: getattr(ledger, name) for name in LEDGER_COLUMNS}
        values["version"] = ledger.version + 1
        values["updated_at"] = datetime.utcnow()
        with self.session_factory() as db:
            result = db.execute(
                update(WorkflowStageRecord)
                .where(
                    WorkflowStageRecord.entity_type == ledger.entity_type,
                    WorkflowStageRecord.entity_id == ledger.entity_id,
                    WorkflowStageRecord.version == ledger.version,
                )
                .values(**values)
            )
            if result.rowcount == 0:
                db.rollback()
                exists = db.execute(
                    select(WorkflowStageRecord.id).where(
                        WorkflowStageRecord.entity_type == ledger.entity_type,
                        WorkflowStageRecord.entity_id == ledger.entity_id,
                    )
                ).first()
                if exists is None:
                    raise NotFoundError(ledger.entity_type, ledger.entity_id)
                raise ConcurrentUpdateError(ledger.entity_type, ledger.entity_id, ledger.version)
            db.commit()
        return replace(ledger, version=ledger.version + 1)

    def list(self, entity_type=None, entity_id=None):
        stmt = select(WorkflowStageRecord).order_by(WorkflowStageRecord.created_at)
        if entity_type:
            stmt = stmt.where(WorkflowStageRecord.entity_type == entity_type)
        if entity_id:
            stmt = stmt.where(WorkflowStageRecord.entity_id == entity_id)
        with self.session_factory() as db:
            return [record_to_ledger(row) for row in db.execute(stmt).scalars().all()]


class InMemoryLedgerStore(LedgerStore):
    def __init__(self):
        self._rows: dict[tuple[str, str], StageLedger] = {}
        self._lock = threading.Lock()

    def get(self, entity_type, entity_id):
        with self._lock:
            return self._rows.get((entity_type, entity_id))

    def create(self, ledger):
        with self._lock:
            if ledger.key in self._rows:
                raise LedgerExistsError(ledger.entity_type, ledger.entity_id)
            stored = replace(ledger, version=1)
            self._rows[ledger.key] = stored
            return stored

    def put(self, ledger):
        with self._lock:
            current = self._rows.get(ledger.key)
            if current is None:
                raise NotFoundError(ledger.entity_type, ledger.entity_id)
            if current.version != ledger.version:
                raise ConcurrentUpdateError(ledger.entity_type, ledger.entity_id, ledger.version)
            stored = replace(ledger, version=ledger.version + 1)
            self._rows[ledger.key] = stored
            return stored

    def list(self, entity_type=None, entity_id=None):
        with self._lock:
            rows = list(self._rows.values())
        return [
            r for r in rows
            if (entity_type is None or r.entity_type == entity_type)
            and (entity_id is None or r.entity_id == entity_id)
        ]
