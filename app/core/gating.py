"""Gating predicates for forward stage transitions.

Leaving ANALYSIS needs a research synthesis and a valuation model for the
entity's ticker. Leaving IC_MEETING needs a strict APPROVE majority, or, when
no votes were cast, an actor in one of the force-advance roles. Other
boundaries are ungated.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional
from app.core.errors import GatingError
from app.core.workflow import Stage

log = logging.getLogger(__name__)

class ArtifactType(str, Enum):
    RESEARCH_SYNTHESIS = "RESEARCH_SYNTHESIS"
    VALUATION_MODEL = "VALUATION_MODEL"

ANALYSIS_REQUIRED_ARTIFACTS: tuple[ArtifactType, ...] = (
    ArtifactType.RESEARCH_SYNTHESIS,
    ArtifactType.VALUATION_MODEL,
)

@dataclass(frozen=True)
class GatingSubject:
    ticker: Optional[str] = None
    proposal_id: Optional[str] = None

@dataclass(frozen=True)
class VoteTally:
    approve: int = 0
    reject: int = 0
    abstain: int = 0

    @property
    def total(self) -> int:
        return self.approve + self.reject + self.abstain

    @property
    def has_majority(self) -> bool:
        return self.approve * 2 > self.total

    def as_dict(self) -> dict:
        return {"approve": self.approve, "reject": self.reject, "abstain": self.abstain}

@dataclass(frozen=True)
class GateDecision:
    stage: Stage
    allowed: bool
    reasons: list[str] = field(default_factory=list)
    missing_artifacts: list[str] = field(default_factory=list)
    vote_tally: Optional[VoteTally] = None
    forced: bool = False

    def raise_if_blocked(self) -> None:
        if self.allowed:
            return
        raise GatingError(
            self.stage.value,
            self.reasons,
            missing_artifacts=self.missing_artifacts,
            vote_tally=self.vote_tally.as_dict() if self.vote_tally else None,
        )


class EvidenceSource:
    """Read-only view of the evidence the gates consult."""

    def get_subject(self, entity_type: str, entity_id: str) -> Optional[GatingSubject]:
        raise NotImplementedError

    def artifact_exists(self, ticker: str, artifact_type: ArtifactType) -> bool:
        raise NotImplementedError

    def get_vote_tally(self, proposal_id: str) -> VoteTally:
        raise NotImplementedError

    def get_actor_role(self, user_id: str) -> Optional[str]:
        raise NotImplementedError


class GatingEvaluator:
    def __init__(self, evidence: EvidenceSource, force_advance_roles: Iterable[str] = ("PM", "ADMIN")):
        self.evidence = evidence
        self.force_advance_roles = frozenset(r.upper() for r in force_advance_roles)

    def evaluate(self, entity_type: str, entity_id: str, from_stage: Stage, acting_user_id: str) -> GateDecision:
        from_stage = Stage(from_stage)
        if from_stage == Stage.ANALYSIS:
            return self._analysis_gate(entity_type, entity_id)
        if from_stage == Stage.IC_MEETING:
            return self._ic_meeting_gate(entity_type, entity_id, acting_user_id)
        return GateDecision(stage=from_stage, allowed=True)

    def check(self, entity_type: str, entity_id: str, from_stage: Stage, acting_user_id: str) -> GateDecision:
        decision = self.evaluate(entity_type, entity_id, from_stage, acting_user_id)
        if not decision.allowed:
            log.info(
                "Advance blocked: %s", "; ".join(decision.reasons),
                extra={"entity_type": entity_type, "entity_id": entity_id, "stage": str(from_stage.value)},
            )
        decision.raise_if_blocked()
        return decision

    def _analysis_gate(self, entity_type: str, entity_id: str) -> GateDecision:
        subject = self.evidence.get_subject(entity_type, entity_id)
        required = [a.value for a in ANALYSIS_REQUIRED_ARTIFACTS]
        if subject is None or not subject.ticker:
            return GateDecision(
                stage=Stage.ANALYSIS,
                allowed=False,
                reasons=[f"No ticker is linked to {entity_type} {entity_id}"],
                missing_artifacts=required,
            )

        missing = [a.value for a in ANALYSIS_REQUIRED_ARTIFACTS if not self.evidence.artifact_exists(subject.ticker, a)]
        if missing:
            return GateDecision(
                stage=Stage.ANALYSIS,
                allowed=False,
                reasons=[f"Missing {a} for {subject.ticker}" for a in missing],
                missing_artifacts=missing,
            )
        return GateDecision(stage=Stage.ANALYSIS, allowed=True)

    def _ic_meeting_gate(self, entity_type: str, entity_id: str, acting_user_id: str) -> GateDecision:
        subject = self.evidence.get_subject(entity_type, entity_id)
        if subject is not None and subject.proposal_id:
            tally = self.evidence.get_vote_tally(subject.proposal_id)
        else:
            tally = VoteTally()

        if tally.total == 0:
            role = self.evidence.get_actor_role(acting_user_id)
            if role and role.upper() in self.force_advance_roles:
                return GateDecision(stage=Stage.IC_MEETING, allowed=True, vote_tally=tally, forced=True)
            roles = ", ".join(sorted(self.force_advance_roles))
            return GateDecision(
                stage=Stage.IC_MEETING,
                allowed=False,
                reasons=[f"No committee votes cast; force-advance requires one of: {roles}"],
                vote_tally=tally,
            )

        if tally.has_majority:
            return GateDecision(stage=Stage.IC_MEETING, allowed=True, vote_tally=tally)
        return GateDecision(
            stage=Stage.IC_MEETING,
            allowed=False,
            reasons=[f"APPROVE votes ({tally.approve} of {tally.total}) are not a strict majority"],
            vote_tally=tally,
        )
