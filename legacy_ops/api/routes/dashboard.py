"""
Dashboard API Routes

Backs the Streamlit dashboard: connection status, connection tests,
cross-system sync and report generation.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from legacy_ops.services.dashboard import MasterControl

logger = logging.getLogger(__name__)

router = APIRouter()

# Lazy initialization so importing the app builds no vendor clients
_control: Optional[MasterControl] = None


def get_control() -> MasterControl:
    """Get the shared MasterControl instance."""
    global _control
    if _control is None:
        _control = MasterControl()
    return _control


class StatusResponse(BaseModel):
    connected: int
    total: int
    rows: List[Dict[str, str]]
    stats: Dict[str, Any]


class ReportResponse(BaseModel):
    status: str
    path: str


def _status() -> StatusResponse:
    control = get_control()
    return StatusResponse(
        connected=control.connected_count(),
        total=len(control.apis),
        rows=control.status_rows(),
        stats=control.stats.model_dump(mode="json"),
    )


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """Current connection table without probing the vendors."""
    return _status()


@router.post("/test", response_model=StatusResponse)
async def test_connections():
    try:
        await get_control().test_connections()
        return _status()
    except Exception as e:
        logger.error(f"Error testing connections: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sync", response_model=Dict[str, int])
async def sync_all_systems():
    try:
        return await get_control().sync_all_systems()
    except Exception as e:
        logger.error(f"Error syncing systems: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/report", response_model=ReportResponse)
async def generate_report():
    try:
        result = await get_control().generate_report()
        return ReportResponse(status="success", path=result["path"])
    except Exception as e:
        logger.error(f"Error generating report: {e}")
        raise HTTPException(status_code=500, detail=str(e))
