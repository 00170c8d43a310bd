"""
OEE Floor Dashboard - API Dependencies

FastAPI dependencies shared by the v1 routers.
"""

from fastapi import Request

from oee_dashboard.services.dashboard_service import DashboardService


def get_dashboard_service(request: Request) -> DashboardService:
    """The dashboard service created by the application lifespan."""
    return request.app.state.dashboard_service
