from __future__ import annotations
import logging
from app.tasks.celery_app import celery_app
from app.db.session import SessionLocal
from app.core.workflow import EventKind
from app.services.notifications import NotificationWriter

log = logging.getLogger(__name__)

@celery_app.task(name="deliver_workflow_notification")
def deliver_workflow_notification(event_kind: str, payload: dict) -> str:
    writer = NotificationWriter(SessionLocal)
    row = writer.write_workflow_event(EventKind(event_kind), payload)
    log.info(
        "Notification stored",
        extra={"entity_type": payload.get("entity_type", "-"), "entity_id": payload.get("entity_id", "-"), "stage": payload.get("to_stage", "-")},
    )
    return row.id
