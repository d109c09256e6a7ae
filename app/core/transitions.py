"""Pure stage transition logic.

Each function takes the current ledger and returns the ledger to persist, or
raises. Nothing here touches storage, gating evidence or notifications.
"""
from __future__ import annotations
from datetime import datetime
from app.core.errors import InitialStageError, TerminalStageError, ValidationError
from app.core.ledger import STAGE_FIELDS, StageLedger
from app.core.workflow import (
    EventKind,
    Stage,
    StageTransition,
    SubStageStatus,
    next_stage,
    previous_stage,
)


def validate_reason(reason: str | None) -> str:
    if reason is None or not str(reason).strip():
        raise ValidationError("A reason is required to revert a workflow stage", field="reason")
    return reason


def parse_stage(value) -> Stage:
    try:
        return Stage(value)
    except ValueError:
        raise ValidationError(f"Unknown workflow stage: {value}", field="stage")


def parse_status(value) -> SubStageStatus:
    try:
        return SubStageStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown stage status: {value}", field="status")


def plan_advance(ledger: StageLedger) -> Stage:
    """Return the stage an advance would move to, or raise at the final stage."""
    target = next_stage(ledger.current_stage)
    if target is None:
        raise TerminalStageError(ledger.entity_type, ledger.entity_id, ledger.current_stage.value)
    return target


def plan_revert(ledger: StageLedger) -> Stage:
    target = previous_stage(ledger.current_stage)
    if target is None:
        raise InitialStageError(ledger.entity_type, ledger.entity_id, ledger.current_stage.value)
    return target


def apply_advance(ledger: StageLedger, acting_user_id: str, now: datetime) -> tuple[StageLedger, StageTransition]:
    outgoing = ledger.current_stage
    incoming = plan_advance(ledger)
    out_status, out_completed = STAGE_FIELDS[outgoing]
    in_status, _ = STAGE_FIELDS[incoming]

    updated = ledger.with_changes(**{
        "current_stage": incoming,
        out_status: SubStageStatus.COMPLETED,
        out_completed: now,
        in_status: SubStageStatus.IN_PROGRESS,
        "last_advanced_by": acting_user_id,
        "last_advanced_at": now,
    })
    transition = StageTransition(
        entity_type=ledger.entity_type,
        entity_id=ledger.entity_id,
        kind=EventKind.ADVANCED,
        from_stage=outgoing,
        to_stage=incoming,
        acted_by=acting_user_id,
        acted_at=now,
    )
    return updated, transition


def apply_revert(ledger: StageLedger, acting_user_id: str, reason: str, now: datetime) -> tuple[StageLedger, StageTransition]:
    reason = validate_reason(reason)
    outgoing = ledger.current_stage
    incoming = plan_revert(ledger)
    out_status, out_completed = STAGE_FIELDS[outgoing]
    in_status, in_completed = STAGE_FIELDS[incoming]

    updated = ledger.with_changes(**{
        "current_stage": incoming,
        out_status: SubStageStatus.PENDING,
        out_completed: None,
        in_status: SubStageStatus.IN_PROGRESS,
        in_completed: None,
        "last_reverted_by": acting_user_id,
        "last_reverted_at": now,
        "revert_reason": reason,
    })
    transition = StageTransition(
        entity_type=ledger.entity_type,
        entity_id=ledger.entity_id,
        kind=EventKind.REVERTED,
        from_stage=outgoing,
        to_stage=incoming,
        acted_by=acting_user_id,
        acted_at=now,
        reason=reason,
    )
    return updated, transition


def apply_status(ledger: StageLedger, stage, status) -> StageLedger:
    # Leaves current_stage alone; used to flag stalled or blocked stages in place.
    stage = parse_stage(stage)
    status = parse_status(status)
    return ledger.with_changes(**{STAGE_FIELDS[stage][0]: status})
