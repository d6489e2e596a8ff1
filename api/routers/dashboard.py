"""
Dashboard API Endpoints.

Passes the dashboard edge function results through untouched.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_token
from domain.errors import PosError
from services import dashboard_service

router = APIRouter()


@router.get(
    "/dashboard",
    summary="Dashboard",
    description="Stats, recent transactions and top products. A failed section is reported under `errors`."
)
def get_dashboard(token: str = Depends(get_token)) -> Dict[str, Any]:
    try:
        return dashboard_service.get_dashboard(token)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to load dashboard: {str(e)}")


@router.get("/dashboard/{section}", summary="Dashboard Section")
def get_dashboard_section(section: str, token: str = Depends(get_token)) -> Any:
    if section not in dashboard_service.DASHBOARD_FUNCTIONS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown dashboard section '{section}'. Use one of {', '.join(dashboard_service.DASHBOARD_FUNCTIONS)}"
        )
    try:
        return dashboard_service.get_section(token, section)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to load dashboard section: {str(e)}")
