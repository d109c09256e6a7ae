import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.api.dependencies import get_db, get_session_factory
from app.db.models import AgentResponse, Proposal, Vote
from app.schemas.research import (
    ArtifactCreate,
    ArtifactResponse,
    VoteCreate,
    VoteResponse,
    VoteTallyResponse,
)
from app.services.evidence import SqlEvidenceSource
from app.services.notifications import NotificationWriter

log = logging.getLogger(__name__)

router = APIRouter()

@router.post("/artifacts", response_model=ArtifactResponse)
def record_artifact(req: ArtifactCreate, db: Session = Depends(get_db)):
    # Generator output is stored as-is; only its presence matters to the gates.
    row = AgentResponse(
        agent_type=req.agent_type,
        ticker=req.ticker.upper(),
        prompt=req.prompt,
        response=req.response,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return ArtifactResponse(
        id=row.id,
        agent_type=row.agent_type,
        ticker=row.ticker,
        response=row.response or {},
        created_at=row.created_at,
    )

@router.post("/votes", response_model=VoteResponse)
def cast_vote(
    req: VoteCreate,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
):
    proposal = db.get(Proposal, req.proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")

    vote = Vote(
        proposal_id=req.proposal_id,
        voter_name=req.voter_name,
        voter_role=req.voter_role,
        vote=req.vote,
        comment=req.comment,
    )
    db.add(vote)
    db.commit()
    db.refresh(vote)

    try:
        NotificationWriter(session_factory).write_vote(proposal.id, proposal.ticker, vote.voter_name, vote.vote)
    except Exception:
        log.exception("Vote notification failed", extra={"entity_type": "PROPOSAL", "entity_id": proposal.id, "stage": "-"})

    return VoteResponse(
        id=vote.id,
        proposal_id=vote.proposal_id,
        voter_name=vote.voter_name,
        voter_role=vote.voter_role,
        vote=vote.vote,
        comment=vote.comment,
    )

@router.get("/votes/{proposal_id}", response_model=VoteTallyResponse)
def get_vote_tally(proposal_id: str, session_factory=Depends(get_session_factory)):
    tally = SqlEvidenceSource(session_factory).get_vote_tally(proposal_id)
    return VoteTallyResponse(
        proposal_id=proposal_id,
        approve=tally.approve,
        reject=tally.reject,
        abstain=tally.abstain,
        total=tally.total,
        has_majority=tally.has_majority,
    )
