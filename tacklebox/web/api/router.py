from fastapi.routing import APIRouter

from tacklebox.web.api import monitoring
from tacklebox.workflow import endpoints as workflow

api_router = APIRouter()
api_router.include_router(monitoring.router)
api_router.include_router(workflow.router, tags=["workflow"])
