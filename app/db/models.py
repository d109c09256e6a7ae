from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Enum, JSON, Text, Integer, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.core.workflow import Stage, SubStageStatus

def _uuid() -> str:
    return str(uuid.uuid4())

def _status_column():
    return mapped_column(
        Enum(SubStageStatus, native_enum=False, length=20),
        default=SubStageStatus.PENDING,
        nullable=False,
    )

class WorkflowStageRecord(Base):
    __tablename__ = "workflow_stages"
    __table_args__ = (UniqueConstraint("entity_type", "entity_id", name="uq_workflow_stages_entity"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    entity_type: Mapped[str] = mapped_column(String(40), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    current_stage: Mapped[Stage] = mapped_column(
        Enum(Stage, native_enum=False, length=20), default=Stage.DISCOVERY, nullable=False
    )

    discovery_status: Mapped[SubStageStatus] = _status_column()
    discovery_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    analysis_status: Mapped[SubStageStatus] = _status_column()
    analysis_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    ic_meeting_status: Mapped[SubStageStatus] = _status_column()
    ic_meeting_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    execution_status: Mapped[SubStageStatus] = _status_column()
    execution_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    monitoring_status: Mapped[SubStageStatus] = _status_column()
    monitoring_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    last_advanced_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_advanced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_reverted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_reverted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    revert_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class ResearchRequest(Base):
    __tablename__ = "research_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    ticker: Mapped[str] = mapped_column(String(16), nullable=False)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    requested_by: Mapped[str] = mapped_column(String(64), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="MEDIUM", nullable=False)
    research_type: Mapped[str] = mapped_column(String(20), default="INITIAL", nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposal_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class AgentResponse(Base):
    __tablename__ = "agent_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    agent_type: Mapped[str] = mapped_column(String(40), nullable=False)
    ticker: Mapped[str | None] = mapped_column(String(16), nullable=True)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    response: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class FinancialModel(Base):
    __tablename__ = "financial_models"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    ticker: Mapped[str] = mapped_column(String(16), nullable=False)
    model_type: Mapped[str] = mapped_column(String(20), nullable=False)
    assumptions: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    proposal_id: Mapped[str] = mapped_column(String(36), nullable=False)
    voter_name: Mapped[str] = mapped_column(Text, nullable=False)
    voter_role: Mapped[str] = mapped_column(String(20), nullable=False)
    vote: Mapped[str] = mapped_column(String(10), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    ticker: Mapped[str | None] = mapped_column(String(16), nullable=True)
    related_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    action_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

class Proposal(Base):
    __tablename__ = "proposals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    ticker: Mapped[str] = mapped_column(String(16), nullable=False)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    analyst: Mapped[str] = mapped_column(Text, nullable=False)
    proposal_type: Mapped[str] = mapped_column(String(10), nullable=False)
    thesis: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="DRAFT", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
