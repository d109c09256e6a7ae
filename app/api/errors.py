import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.errors import (
    ConcurrentUpdateError,
    GatingError,
    InitialStageError,
    LedgerExistsError,
    NotFoundError,
    TerminalStageError,
    ValidationError,
    WorkflowError,
)

log = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: 404,
    ValidationError: 400,
    GatingError: 400,
    TerminalStageError: 409,
    InitialStageError: 409,
    ConcurrentUpdateError: 409,
    LedgerExistsError: 409,
}


def status_for(exc: WorkflowError) -> int:
    for cls, status in STATUS_BY_ERROR.items():
        if isinstance(exc, cls):
            return status
    return 500


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    status = status_for(exc)
    log.info(
        "%s: %s", exc.kind, exc.message,
        extra={
            "entity_type": exc.context.get("entity_type", "-"),
            "entity_id": exc.context.get("entity_id", "-"),
            "stage": exc.context.get("stage", "-"),
        },
    )
    return JSONResponse(status_code=status, content=exc.to_dict())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkflowError, workflow_error_handler)
