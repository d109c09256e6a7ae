from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from app.core.workflow import Stage, SubStageStatus
from app.core.ledger import StageLedger
from app.core.progress import StageProgress
from app.core.gating import GateDecision

class StageLedgerResponse(BaseModel):
    entity_type: str
    entity_id: str
    current_stage: Stage
    discovery_status: SubStageStatus
    analysis_status: SubStageStatus
    ic_meeting_status: SubStageStatus
    execution_status: SubStageStatus
    monitoring_status: SubStageStatus
    last_advanced_by: Optional[str] = None
    last_advanced_at: Optional[datetime] = None
    last_reverted_by: Optional[str] = None
    last_reverted_at: Optional[datetime] = None
    revert_reason: Optional[str] = None
    version: int

    @classmethod
    def from_ledger(cls, ledger: StageLedger) -> "StageLedgerResponse":
        return cls(
            entity_type=ledger.entity_type,
            entity_id=ledger.entity_id,
            current_stage=ledger.current_stage,
            discovery_status=ledger.discovery_status,
            analysis_status=ledger.analysis_status,
            ic_meeting_status=ledger.ic_meeting_status,
            execution_status=ledger.execution_status,
            monitoring_status=ledger.monitoring_status,
            last_advanced_by=ledger.last_advanced_by,
            last_advanced_at=ledger.last_advanced_at,
            last_reverted_by=ledger.last_reverted_by,
            last_reverted_at=ledger.last_reverted_at,
            revert_reason=ledger.revert_reason,
            version=ledger.version,
        )


class RevertRequest(BaseModel):
    reason: Optional[str] = Field(None, examples=["needs more research"])


class StageStatusUpdateRequest(BaseModel):
    # Plain strings so unknown values reach the engine and come back as ValidationError.
    stage: str = Field(..., examples=["ANALYSIS"])
    status: str = Field(..., examples=["BLOCKED"])


class StageHistoryItem(BaseModel):
    stage: Stage
    status: SubStageStatus
    completed_at: Optional[datetime] = None


class StageProgressResponse(BaseModel):
    current_stage: Stage
    current_index: int
    total_stages: int
    percent_complete: float
    stage_history: List[StageHistoryItem]

    @classmethod
    def from_progress(cls, progress: StageProgress) -> "StageProgressResponse":
        return cls(
            current_stage=progress.current_stage,
            current_index=progress.current_index,
            total_stages=progress.total_stages,
            percent_complete=progress.percent_complete,
            stage_history=[
                StageHistoryItem(stage=h.stage, status=h.status, completed_at=h.completed_at)
                for h in progress.stage_history
            ],
        )


class GateDecisionResponse(BaseModel):
    stage: Optional[Stage] = None
    allowed: bool
    terminal: bool = False
    forced: bool = False
    reasons: List[str] = []
    missing_artifacts: List[str] = []
    vote_tally: Optional[Dict[str, int]] = None

    @classmethod
    def from_decision(cls, decision: Optional[GateDecision]) -> "GateDecisionResponse":
        if decision is None:
            return cls(allowed=False, terminal=True, reasons=["Already at final stage"])
        return cls(
            stage=decision.stage,
            allowed=decision.allowed,
            forced=decision.forced,
            reasons=decision.reasons,
            missing_artifacts=decision.missing_artifacts,
            vote_tally=decision.vote_tally.as_dict() if decision.vote_tally else None,
        )


class ErrorResponse(BaseModel):
    error: str
    detail: str
    context: Dict[str, Any] = {}
