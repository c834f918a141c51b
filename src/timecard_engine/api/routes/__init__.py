"""API routes."""

from timecard_engine.api.routes.health import router as health_router
from timecard_engine.api.routes.invoicing import router as invoicing_router
from timecard_engine.api.routes.payroll import router as payroll_router

__all__ = ["health_router", "invoicing_router", "payroll_router"]
