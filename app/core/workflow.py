from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

class Stage(str, Enum):
    DISCOVERY = "DISCOVERY"
    ANALYSIS = "ANALYSIS"
    IC_MEETING = "IC_MEETING"
    EXECUTION = "EXECUTION"
    MONITORING = "MONITORING"

class SubStageStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"

class EventKind(str, Enum):
    ADVANCED = "ADVANCED"
    REVERTED = "REVERTED"

# Entity kinds the gating evidence can resolve to a ticker and proposal.
TRACKED_ENTITY_TYPES: tuple[str, ...] = ("RESEARCH", "PROPOSAL")

STAGE_ORDER: tuple[Stage, ...] = (
    Stage.DISCOVERY,
    Stage.ANALYSIS,
    Stage.IC_MEETING,
    Stage.EXECUTION,
    Stage.MONITORING,
)

def stage_index(stage: Stage) -> int:
    return STAGE_ORDER.index(Stage(stage))

def next_stage(stage: Stage) -> Optional[Stage]:
    """Successor in the fixed order, or None for the final stage."""
    idx = stage_index(stage)
    if idx >= len(STAGE_ORDER) - 1:
        return None
    return STAGE_ORDER[idx + 1]

def previous_stage(stage: Stage) -> Optional[Stage]:
    """Predecessor in the fixed order, or None for the first stage."""
    idx = stage_index(stage)
    if idx == 0:
        return None
    return STAGE_ORDER[idx - 1]

@dataclass(frozen=True)
class StageTransition:
    entity_type: str
    entity_id: str
    kind: EventKind
    from_stage: Stage
    to_stage: Stage
    acted_by: str
    acted_at: datetime
    reason: Optional[str] = None

    def payload(self) -> dict:
        data = {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "from_stage": self.from_stage.value,
            "to_stage": self.to_stage.value,
            "acted_by": self.acted_by,
            "acted_at": self.acted_at.isoformat(),
        }
        if self.kind == EventKind.REVERTED:
            data["reason"] = self.reason
        return data
