from fastapi import APIRouter
from app.api.routes_health import router as health_router
from app.api.routes_research import router as research_router
from app.api.routes_committee import router as committee_router
from app.api.routes_workflow import router as workflow_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(research_router, tags=["research"])
router.include_router(committee_router, tags=["committee"])
router.include_router(workflow_router, tags=["workflow"])
