"""API for checking project status."""
from tacklebox.web.api.monitoring.views import router

__all__ = ["router"]
