from __future__ import annotations
from typing import Callable, Optional
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.core.gating import ArtifactType, EvidenceSource, GatingSubject, VoteTally
from app.db.models import AgentResponse, FinancialModel, Proposal, ResearchRequest, UserProfile, Vote

# artifact type -> agent types whose stored output counts as that artifact
ARTIFACT_AGENT_TYPES: dict[ArtifactType, tuple[str, ...]] = {
    ArtifactType.RESEARCH_SYNTHESIS: ("RESEARCH_SYNTHESIZER",),
    ArtifactType.VALUATION_MODEL: ("FINANCIAL_MODELER",),
}


class SqlEvidenceSource(EvidenceSource):
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_subject(self, entity_type: str, entity_id: str) -> Optional[GatingSubject]:
        with self.session_factory() as db:
            kind = entity_type.upper()
            if kind == "RESEARCH":
                req = db.get(ResearchRequest, entity_id)
                if not req:
                    return None
                return GatingSubject(ticker=req.ticker.upper(), proposal_id=req.proposal_id)
            if kind == "PROPOSAL":
                proposal = db.get(Proposal, entity_id)
                if not proposal:
                    return None
                return GatingSubject(ticker=proposal.ticker.upper(), proposal_id=proposal.id)
            return None

    def artifact_exists(self, ticker: str, artifact_type: ArtifactType) -> bool:
        ticker = ticker.upper()
        with self.session_factory() as db:
            found = db.execute(
                select(AgentResponse.id).where(
                    func.upper(AgentResponse.ticker) == ticker,
                    AgentResponse.agent_type.in_(ARTIFACT_AGENT_TYPES[ArtifactType(artifact_type)]),
                ).limit(1)
            ).first()
            if found is not None:
                return True
            if ArtifactType(artifact_type) == ArtifactType.VALUATION_MODEL:
                model = db.execute(
                    select(FinancialModel.id).where(func.upper(FinancialModel.ticker) == ticker).limit(1)
                ).first()
                return model is not None
            return False

    def get_vote_tally(self, proposal_id: str) -> VoteTally:
        with self.session_factory() as db:
            rows = db.execute(
                select(func.upper(Vote.vote), func.count(Vote.id))
                .where(Vote.proposal_id == proposal_id)
                .group_by(func.upper(Vote.vote))
            ).all()
        counts = {vote: count for vote, count in rows}
        return VoteTally(
            approve=counts.get("APPROVE", 0),
            reject=counts.get("REJECT", 0),
            abstain=counts.get("ABSTAIN", 0),
        )

    def get_actor_role(self, user_id: str) -> Optional[str]:
        with self.session_factory() as db:
            user = db.get(UserProfile, user_id)
            return user.role if user else None
