from pydantic import BaseModel, Field
from typing import Literal, Optional, Dict, Any
from datetime import datetime

class ResearchRequestCreate(BaseModel):
    ticker: str = Field(..., examples=["NVDA"])
    company_name: str = Field(..., examples=["NVIDIA Corporation"])
    requested_by: str
    assigned_to: Optional[str] = None
    priority: Literal["LOW", "MEDIUM", "HIGH", "URGENT"] = "MEDIUM"
    research_type: Literal["INITIAL", "UPDATE", "DEEP_DIVE"] = "INITIAL"
    description: Optional[str] = None
    proposal_id: Optional[str] = None

class ResearchRequestResponse(BaseModel):
    id: str
    ticker: str
    company_name: str
    requested_by: str
    assigned_to: Optional[str] = None
    status: str
    priority: str
    research_type: str
    description: Optional[str] = None
    proposal_id: Optional[str] = None
    created_at: datetime

class ProposalCreate(BaseModel):
    ticker: str = Field(..., examples=["NVDA"])
    company_name: str
    analyst: str
    proposal_type: Literal["BUY", "SELL", "HOLD"] = "BUY"
    thesis: str

class ProposalResponse(BaseModel):
    id: str
    ticker: str
    company_name: str
    analyst: str
    proposal_type: str
    thesis: str
    status: str

class ArtifactCreate(BaseModel):
    agent_type: Literal[
        "RESEARCH_SYNTHESIZER", "FINANCIAL_MODELER", "CONTRARIAN", "SCENARIO_SIMULATOR", "THESIS_MONITOR"
    ]
    ticker: str
    prompt: Optional[str] = None
    response: Dict[str, Any] = {}

class ArtifactResponse(BaseModel):
    id: str
    agent_type: str
    ticker: Optional[str] = None
    response: Dict[str, Any] = {}
    created_at: datetime

class VoteCreate(BaseModel):
    proposal_id: str
    voter_name: str
    voter_role: str
    vote: Literal["APPROVE", "REJECT", "ABSTAIN"]
    comment: Optional[str] = None

class VoteResponse(BaseModel):
    id: str
    proposal_id: str
    voter_name: str
    voter_role: str
    vote: str
    comment: Optional[str] = None

class VoteTallyResponse(BaseModel):
    proposal_id: str
    approve: int
    reject: int
    abstain: int
    total: int
    has_majority: bool
