"""Shared fixtures: in-memory SQLite, fake gating evidence and a recording notifier."""
from datetime import datetime, timedelta
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.engine import WorkflowEngine
from app.core.gating import ArtifactType, EvidenceSource, GatingEvaluator, GatingSubject, VoteTally
from app.db.session import Base
from app.db import models  # noqa
from app.services.ledger_store import InMemoryLedgerStore
from app.services.notifications import NotificationEmitter


class FakeEvidence(EvidenceSource):
    def __init__(self):
        self.subjects = {}
        self.artifacts = set()
        self.tallies = {}
        self.roles = {}

    def add_artifacts(self, ticker, *artifact_types):
        for artifact_type in artifact_types:
            self.artifacts.add((ticker, ArtifactType(artifact_type)))

    def get_subject(self, entity_type, entity_id):
        return self.subjects.get((entity_type, entity_id))

    def artifact_exists(self, ticker, artifact_type):
        return (ticker, ArtifactType(artifact_type)) in self.artifacts

    def get_vote_tally(self, proposal_id):
        return self.tallies.get(proposal_id, VoteTally())

    def get_actor_role(self, user_id):
        return self.roles.get(user_id)


class RecordingNotifier(NotificationEmitter):
    def __init__(self):
        self.events = []

    def _deliver(self, event_kind, payload):
        self.events.append((event_kind, payload))


class StepClock:
    """Returns a strictly increasing time on every call."""
    def __init__(self, start=datetime(2026, 1, 5, 9, 0, 0)):
        self.now = start

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def evidence():
    ev = FakeEvidence()
    ev.subjects[("RESEARCH", "req-1")] = GatingSubject(ticker="NVDA", proposal_id="prop-1")
    ev.roles.update({"pm-1": "PM", "admin-1": "ADMIN", "analyst-1": "ANALYST"})
    return ev


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def workflow_engine(store, evidence, notifier, clock):
    return WorkflowEngine(
        store=store,
        gating=GatingEvaluator(evidence),
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def research_ledger(workflow_engine):
    """Ledger for research request req-1, freshly created at DISCOVERY."""
    return workflow_engine.create_ledger("RESEARCH", "req-1")
