import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.api.dependencies import get_db, get_workflow_engine
from app.core.engine import WorkflowEngine
from app.db.models import Proposal, ResearchRequest
from app.schemas.research import (
    ProposalCreate,
    ProposalResponse,
    ResearchRequestCreate,
    ResearchRequestResponse,
)

log = logging.getLogger(__name__)

router = APIRouter()

RESEARCH_ENTITY = "RESEARCH"
PROPOSAL_ENTITY = "PROPOSAL"

def _research_response(req: ResearchRequest) -> ResearchRequestResponse:
    return ResearchRequestResponse(
        id=req.id,
        ticker=req.ticker,
        company_name=req.company_name,
        requested_by=req.requested_by,
        assigned_to=req.assigned_to,
        status=req.status,
        priority=req.priority,
        research_type=req.research_type,
        description=req.description,
        proposal_id=req.proposal_id,
        created_at=req.created_at,
    )

def _proposal_response(p: Proposal) -> ProposalResponse:
    return ProposalResponse(
        id=p.id,
        ticker=p.ticker,
        company_name=p.company_name,
        analyst=p.analyst,
        proposal_type=p.proposal_type,
        thesis=p.thesis,
        status=p.status,
    )

@router.post("/research-requests", response_model=ResearchRequestResponse)
def create_research_request(
    req: ResearchRequestCreate,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    request = ResearchRequest(
        ticker=req.ticker.upper(),
        company_name=req.company_name,
        requested_by=req.requested_by,
        assigned_to=req.assigned_to,
        priority=req.priority,
        research_type=req.research_type,
        description=req.description,
        proposal_id=req.proposal_id,
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    engine.create_ledger(RESEARCH_ENTITY, request.id)
    log.info("Research request created", extra={"entity_type": RESEARCH_ENTITY, "entity_id": request.id, "stage": "DISCOVERY"})
    return _research_response(request)

@router.get("/research-requests/{request_id}", response_model=ResearchRequestResponse)
def get_research_request(request_id: str, db: Session = Depends(get_db)):
    request = db.get(ResearchRequest, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Research request not found")
    return _research_response(request)

@router.post("/proposals", response_model=ProposalResponse)
def create_proposal(
    req: ProposalCreate,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    proposal = Proposal(
        ticker=req.ticker.upper(),
        company_name=req.company_name,
        analyst=req.analyst,
        proposal_type=req.proposal_type,
        thesis=req.thesis,
    )
    db.add(proposal)
    db.commit()
    db.refresh(proposal)

    engine.create_ledger(PROPOSAL_ENTITY, proposal.id)
    return _proposal_response(proposal)

@router.get("/proposals/{proposal_id}", response_model=ProposalResponse)
def get_proposal(proposal_id: str, db: Session = Depends(get_db)):
    proposal = db.get(Proposal, proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return _proposal_response(proposal)
