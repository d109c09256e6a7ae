from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from app.core.workflow import Stage, SubStageStatus

# stage -> (status field, completed_at field)
STAGE_FIELDS: dict[Stage, tuple[str, str]] = {
    Stage.DISCOVERY: ("discovery_status", "discovery_completed_at"),
    Stage.ANALYSIS: ("analysis_status", "analysis_completed_at"),
    Stage.IC_MEETING: ("ic_meeting_status", "ic_meeting_completed_at"),
    Stage.EXECUTION: ("execution_status", "execution_completed_at"),
    Stage.MONITORING: ("monitoring_status", "monitoring_completed_at"),
}

@dataclass(frozen=True)
class StageLedger:
    """Where one tracked entity sits in the pipeline.

    Values are immutable; transitions produce a new ledger via ``replace``.
    ``version`` is owned by the stores and bumped on every successful write.
    """
    entity_type: str
    entity_id: str
    current_stage: Stage = Stage.DISCOVERY

    discovery_status: SubStageStatus = SubStageStatus.PENDING
    analysis_status: SubStageStatus = SubStageStatus.PENDING
    ic_meeting_status: SubStageStatus = SubStageStatus.PENDING
    execution_status: SubStageStatus = SubStageStatus.PENDING
    monitoring_status: SubStageStatus = SubStageStatus.PENDING

    discovery_completed_at: Optional[datetime] = None
    analysis_completed_at: Optional[datetime] = None
    ic_meeting_completed_at: Optional[datetime] = None
    execution_completed_at: Optional[datetime] = None
    monitoring_completed_at: Optional[datetime] = None

    last_advanced_by: Optional[str] = None
    last_advanced_at: Optional[datetime] = None
    last_reverted_by: Optional[str] = None
    last_reverted_at: Optional[datetime] = None
    revert_reason: Optional[str] = None

    version: int = 0

    @classmethod
    def new(cls, entity_type: str, entity_id: str) -> "StageLedger":
        return cls(entity_type=entity_type, entity_id=entity_id)

    @property
    def key(self) -> tuple[str, str]:
        return (self.entity_type, self.entity_id)

    def status_of(self, stage: Stage) -> SubStageStatus:
        return getattr(self, STAGE_FIELDS[Stage(stage)][0])

    def completed_at_of(self, stage: Stage) -> Optional[datetime]:
        return getattr(self, STAGE_FIELDS[Stage(stage)][1])

    def statuses(self) -> dict[Stage, SubStageStatus]:
        return {stage: self.status_of(stage) for stage in STAGE_FIELDS}

    def with_changes(self, **changes) -> "StageLedger":
        return replace(self, **changes)
