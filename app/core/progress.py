from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from app.core.ledger import StageLedger
from app.core.workflow import STAGE_ORDER, Stage, SubStageStatus, stage_index

@dataclass(frozen=True)
class StageHistoryEntry:
    stage: Stage
    status: SubStageStatus
    completed_at: Optional[datetime] = None

@dataclass(frozen=True)
class StageProgress:
    current_stage: Stage
    current_index: int
    total_stages: int
    percent_complete: float
    stage_history: list[StageHistoryEntry]


def project_progress(ledger: StageLedger) -> StageProgress:
    """Render a ledger into a per-stage progress summary.

    ``completed_at`` is only reported for stages before the current one. Rows
    written before per-stage timestamps existed fall back to
    ``last_advanced_at``, which is only exact for the most recent advance.
    """
    current_index = stage_index(ledger.current_stage)
    total = len(STAGE_ORDER)
    history = []
    for idx, stage in enumerate(STAGE_ORDER):
        completed_at = None
        if idx < current_index:
            completed_at = ledger.completed_at_of(stage) or ledger.last_advanced_at
        history.append(StageHistoryEntry(stage=stage, status=ledger.status_of(stage), completed_at=completed_at))

    return StageProgress(
        current_stage=ledger.current_stage,
        current_index=current_index,
        total_stages=total,
        percent_complete=(current_index + 1) / total * 100,
        stage_history=history,
    )
