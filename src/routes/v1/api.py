from fastapi import APIRouter

from src.projects.router import router as projects_router
from src.temporal.router import router as temporal_router
from src.covenants.router import router as covenants_router
from src.lender.router import router as lender_router
from src.ci_reports.router import router as ci_reports_router
from src.audit.router import router as audit_router

api_router = APIRouter()

api_router.include_router(projects_router)
api_router.include_router(temporal_router)
api_router.include_router(covenants_router)
api_router.include_router(lender_router)
api_router.include_router(ci_reports_router)
api_router.include_router(audit_router)
