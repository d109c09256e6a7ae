from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.engine import WorkflowEngine
from app.core.gating import GatingEvaluator
from app.core.locks import KeyedLock
from app.db.models import UserProfile
from app.db.session import SessionLocal
from app.services.evidence import SqlEvidenceSource
from app.services.ledger_store import SqlLedgerStore
from app.services.notifications import CeleryNotificationEmitter, LoggingNotificationEmitter

# Shared across requests so concurrent calls on one entity are serialised in-process.
_ledger_locks = KeyedLock()


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_db(session_factory=Depends(get_session_factory)):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_workflow_engine(session_factory=Depends(get_session_factory)) -> WorkflowEngine:
    notifier = CeleryNotificationEmitter() if settings.notifications_enabled else LoggingNotificationEmitter()
    return WorkflowEngine(
        store=SqlLedgerStore(session_factory),
        gating=GatingEvaluator(SqlEvidenceSource(session_factory), settings.force_advance_roles),
        notifier=notifier,
        locks=_ledger_locks,
    )


def get_actor(x_user_id: Optional[str] = Header(None), db: Session = Depends(get_db)) -> Actor:
    user = db.get(UserProfile, x_user_id) if x_user_id else None
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Actor(id=user.id, role=user.role.upper())


def require_role(roles: Iterable[str]):
    allowed = frozenset(r.upper() for r in roles)

    def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return actor

    return _check
