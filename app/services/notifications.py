from __future__ import annotations
import logging
from typing import Any, Callable, Dict
from sqlalchemy.orm import Session
from app.core.workflow import EventKind
from app.db.models import Notification

log = logging.getLogger(__name__)


def render_workflow_notification(event_kind: EventKind, payload: Dict[str, Any]) -> Dict[str, Any]:
    entity_type = payload["entity_type"]
    entity_id = payload["entity_id"]
    from_stage = payload["from_stage"]
    to_stage = payload["to_stage"]
    action_url = f"/workflow/{entity_type.lower()}/{entity_id}"

    if EventKind(event_kind) == EventKind.ADVANCED:
        return {
            "type": "SYSTEM",
            "severity": "INFO",
            "title": "Workflow Advanced",
            "message": f"{entity_type} {entity_id} advanced from {from_stage} to {to_stage}",
            "related_id": entity_id,
            "action_url": action_url,
        }
    return {
        "type": "SYSTEM",
        "severity": "WARNING",
        "title": "Workflow Reverted",
        "message": f"{entity_type} {entity_id} reverted from {from_stage} to {to_stage}. Reason: {payload.get('reason')}",
        "related_id": entity_id,
        "action_url": action_url,
    }


class NotificationWriter:
    """Persists notification rows."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _save(self, fields: Dict[str, Any]) -> Notification:
        with self.session_factory() as db:
            row = Notification(is_read=False, **fields)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    def write_workflow_event(self, event_kind: EventKind, payload: Dict[str, Any]) -> Notification:
        return self._save(render_workflow_notification(event_kind, payload))

    def write_vote(self, proposal_id: str, ticker: str, voter_name: str, vote: str) -> Notification:
        return self._save({
            "type": "IC_VOTE",
            "severity": "INFO",
            "title": f"New Vote: {ticker}",
            "message": f"{voter_name} voted {vote} on {ticker} proposal",
            "ticker": ticker,
            "related_id": proposal_id,
            "action_url": "/ic-meeting",
        })


class NotificationEmitter:
    """Best-effort announcement of committed transitions.

    ``notify`` never raises; delivery failures are logged and dropped.
    """

    def notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        try:
            self._deliver(EventKind(event_kind), payload)
        except Exception:
            log.exception(
                "Workflow notification delivery failed",
                extra={"entity_type": payload.get("entity_type", "-"), "entity_id": payload.get("entity_id", "-"), "stage": payload.get("to_stage", "-")},
            )

    def _deliver(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class DirectNotificationEmitter(NotificationEmitter):
    """Writes the notification row in the calling thread.

    Used by tests and by callers embedding the engine without a broker; the
    API wires the Celery or logging emitter instead.
    """

    def __init__(self, writer: NotificationWriter):
        self.writer = writer

    def _deliver(self, event_kind, payload):
        self.writer.write_workflow_event(event_kind, payload)


class CeleryNotificationEmitter(NotificationEmitter):
    """Enqueues delivery on the Celery broker and returns immediately."""

    def _deliver(self, event_kind, payload):
        from app.tasks.notifications import deliver_workflow_notification
        deliver_workflow_notification.delay(event_kind.value, payload)


class LoggingNotificationEmitter(NotificationEmitter):
    def _deliver(self, event_kind, payload):
        log.info(
            "Workflow %s from %s to %s", event_kind.value.lower(), payload["from_stage"], payload["to_stage"],
            extra={"entity_type": payload["entity_type"], "entity_id": payload["entity_id"], "stage": payload["to_stage"]},
        )
