"""Workflow error taxonomy.

Every error carries a stable ``kind`` plus a ``context`` dict so callers can
build a response that explains what failed, not only that it failed.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class WorkflowError(Exception):
    kind = "WorkflowError"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message, "context": self.context}


class NotFoundError(WorkflowError):
    kind = "NotFoundError"

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"No workflow stage found for {entity_type} {entity_id}",
            {"entity_type": entity_type, "entity_id": entity_id},
        )


class TerminalStageError(WorkflowError):
    kind = "TerminalStageError"

    def __init__(self, entity_type: str, entity_id: str, stage: str):
        super().__init__(
            f"Cannot advance beyond final stage {stage}",
            {"entity_type": entity_type, "entity_id": entity_id, "stage": stage},
        )


class InitialStageError(WorkflowError):
    kind = "InitialStageError"

    def __init__(self, entity_type: str, entity_id: str, stage: str):
        super().__init__(
            f"Cannot revert from first stage {stage}",
            {"entity_type": entity_type, "entity_id": entity_id, "stage": stage},
        )


class ValidationError(WorkflowError):
    kind = "ValidationError"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else {})


class GatingError(WorkflowError):
    """Advance blocked by an unmet prerequisite.

    ``reasons`` is one line per failed condition; ``missing_artifacts`` and
    ``vote_tally`` are filled when that kind of condition failed.
    """
    kind = "GatingError"

    def __init__(
        self,
        stage: str,
        reasons: list[str],
        missing_artifacts: Optional[list[str]] = None,
        vote_tally: Optional[Dict[str, int]] = None,
    ):
        context: Dict[str, Any] = {"stage": stage, "reasons": list(reasons)}
        if missing_artifacts:
            context["missing_artifacts"] = list(missing_artifacts)
        if vote_tally is not None:
            context["vote_tally"] = dict(vote_tally)
        super().__init__(f"Cannot advance from {stage}: " + "; ".join(reasons), context)
        self.reasons = list(reasons)
        self.missing_artifacts = list(missing_artifacts or [])
        self.vote_tally = vote_tally


class ConcurrentUpdateError(WorkflowError):
    kind = "ConcurrentUpdateError"

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        super().__init__(
            f"Workflow stage for {entity_type} {entity_id} was modified concurrently",
            {"entity_type": entity_type, "entity_id": entity_id, "expected_version": expected_version},
        )


class LedgerExistsError(WorkflowError):
    kind = "LedgerExistsError"

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"Workflow stage already exists for {entity_type} {entity_id}",
            {"entity_type": entity_type, "entity_id": entity_id},
        )
