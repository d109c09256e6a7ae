from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable, Optional
from app.core.errors import NotFoundError, ValidationError
from app.core.gating import GateDecision, GatingEvaluator
from app.core.ledger import StageLedger
from app.core.locks import KeyedLock
from app.core.progress import StageProgress, project_progress
from app.core.transitions import (
    apply_advance,
    apply_revert,
    apply_status,
    parse_stage,
    parse_status,
    plan_advance,
    validate_reason,
)
from app.core.workflow import TRACKED_ENTITY_TYPES, StageTransition, next_stage
from app.services.ledger_store import LedgerStore
from app.services.notifications import NotificationEmitter

log = logging.getLogger(__name__)

class WorkflowEngine:
    """Moves tracked entities through the five-stage pipeline.

    Every mutation is a single read-modify-write against the ledger store,
    serialised per ``(entity_type, entity_id)``. Notifications go out after
    the write commits and never affect the result.
    """

    def __init__(
        self,
        store: LedgerStore,
        gating: GatingEvaluator,
        notifier: NotificationEmitter,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.gating = gating
        self.notifier = notifier
        self.locks = locks or KeyedLock()
        self.clock = clock

    def _load(self, entity_type: str, entity_id: str) -> StageLedger:
        ledger = self.store.get(entity_type, entity_id)
        if ledger is None:
            raise NotFoundError(entity_type, entity_id)
        return ledger

    def _announce(self, transition: StageTransition) -> None:
        log.info(
            "Stage %s: %s -> %s", transition.kind.value.lower(), transition.from_stage.value, transition.to_stage.value,
            extra={"entity_type": transition.entity_type, "entity_id": transition.entity_id, "stage": transition.to_stage.value},
        )
        self.notifier.notify(transition.kind, transition.payload())

    def create_ledger(self, entity_type: str, entity_id: str) -> StageLedger:
        if entity_type not in TRACKED_ENTITY_TYPES:
            raise ValidationError(f"Unsupported workflow entity type: {entity_type}", field="entity_type")
        return self.store.create(StageLedger.new(entity_type, entity_id))

    def get_ledger(self, entity_type: str, entity_id: str) -> StageLedger:
        return self._load(entity_type, entity_id)

    def list_ledgers(self, entity_type: Optional[str] = None, entity_id: Optional[str] = None) -> list[StageLedger]:
        return self.store.list(entity_type, entity_id)

    def advance_stage(self, entity_type: str, entity_id: str, acting_user_id: str) -> StageLedger:
        with self.locks.hold((entity_type, entity_id)):
            ledger = self._load(entity_type, entity_id)
            plan_advance(ledger)
            decision = self.gating.check(entity_type, entity_id, ledger.current_stage, acting_user_id)
            if decision.forced:
                log.warning(
                    "Force-advancing without committee votes by %s", acting_user_id,
                    extra={"entity_type": entity_type, "entity_id": entity_id, "stage": ledger.current_stage.value},
                )
            updated, transition = apply_advance(ledger, acting_user_id, self.clock())
            saved = self.store.put(updated)
        self._announce(transition)
        return saved

    def revert_stage(self, entity_type: str, entity_id: str, acting_user_id: str, reason: str) -> StageLedger:
        reason = validate_reason(reason)
        with self.locks.hold((entity_type, entity_id)):
            ledger = self._load(entity_type, entity_id)
            updated, transition = apply_revert(ledger, acting_user_id, reason, self.clock())
            saved = self.store.put(updated)
        self._announce(transition)
        return saved

    def update_stage_status(self, entity_type: str, entity_id: str, stage, status) -> StageLedger:
        stage = parse_stage(stage)
        status = parse_status(status)
        with self.locks.hold((entity_type, entity_id)):
            ledger = self._load(entity_type, entity_id)
            saved = self.store.put(apply_status(ledger, stage, status))
        log.info(
            "Stage status set to %s", status.value,
            extra={"entity_type": entity_type, "entity_id": entity_id, "stage": stage.value},
        )
        return saved

    def get_stage_progress(self, entity_type: str, entity_id: str) -> StageProgress:
        return project_progress(self._load(entity_type, entity_id))

    def preview_advance(self, entity_type: str, entity_id: str, acting_user_id: str) -> Optional[GateDecision]:
        """Gate decision for the next advance, or None at the final stage."""
        ledger = self._load(entity_type, entity_id)
        if next_stage(ledger.current_stage) is None:
            return None
        return self.gating.evaluate(entity_type, entity_id, ledger.current_stage, acting_user_id)
