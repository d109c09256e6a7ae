from typing import List, Optional
from fastapi import APIRouter, Depends
from app.api.dependencies import Actor, get_actor, get_workflow_engine, require_role
from app.core.config import settings
from app.core.engine import WorkflowEngine
from app.schemas.workflow import (
    GateDecisionResponse,
    RevertRequest,
    StageLedgerResponse,
    StageProgressResponse,
    StageStatusUpdateRequest,
)

router = APIRouter(prefix="/workflow-stages")

@router.get("", response_model=List[StageLedgerResponse])
def list_workflow_stages(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return [StageLedgerResponse.from_ledger(l) for l in engine.list_ledgers(entity_type, entity_id)]

@router.get("/entity/{entity_type}/{entity_id}", response_model=StageLedgerResponse)
def get_workflow_stage(entity_type: str, entity_id: str, engine: WorkflowEngine = Depends(get_workflow_engine)):
    return StageLedgerResponse.from_ledger(engine.get_ledger(entity_type, entity_id))

@router.get("/entity/{entity_type}/{entity_id}/progress", response_model=StageProgressResponse)
def get_workflow_progress(entity_type: str, entity_id: str, engine: WorkflowEngine = Depends(get_workflow_engine)):
    return StageProgressResponse.from_progress(engine.get_stage_progress(entity_type, entity_id))

@router.get("/entity/{entity_type}/{entity_id}/gate", response_model=GateDecisionResponse)
def get_advance_gate(
    entity_type: str,
    entity_id: str,
    actor: Actor = Depends(get_actor),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return GateDecisionResponse.from_decision(engine.preview_advance(entity_type, entity_id, actor.id))

@router.post("/entity/{entity_type}/{entity_id}/advance", response_model=StageLedgerResponse)
def advance_workflow_stage(
    entity_type: str,
    entity_id: str,
    actor: Actor = Depends(require_role(settings.advance_roles)),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return StageLedgerResponse.from_ledger(engine.advance_stage(entity_type, entity_id, actor.id))

@router.post("/entity/{entity_type}/{entity_id}/revert", response_model=StageLedgerResponse)
def revert_workflow_stage(
    entity_type: str,
    entity_id: str,
    req: RevertRequest,
    actor: Actor = Depends(require_role(settings.revert_roles)),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return StageLedgerResponse.from_ledger(engine.revert_stage(entity_type, entity_id, actor.id, req.reason))

@router.patch("/entity/{entity_type}/{entity_id}/status", response_model=StageLedgerResponse)
def update_workflow_stage_status(
    entity_type: str,
    entity_id: str,
    req: StageStatusUpdateRequest,
    actor: Actor = Depends(require_role(settings.advance_roles)),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return StageLedgerResponse.from_ledger(engine.update_stage_status(entity_type, entity_id, req.stage, req.status))
