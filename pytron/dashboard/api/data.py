from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from pytron.services.data_export import DataImportError, export_state, import_state
from ..dependencies import get_tracker
from ..schemas import ImportResult

router = APIRouter(prefix="/api/data", tags=["data"])

@router.get("/export", response_model=Dict[str, Any])
async def export_data(tracker: DailyTracker = Depends(get_tracker)):
    """
    Full-state export as a downloadable JSON document
    """
    document = export_state(tracker.state, tracker.now())
    filename = f"pytron-backup-{tracker.today().isoformat()}.json"
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@router.post("/import", response_model=ImportResult)
async def import_data(request: Request, tracker: DailyTracker = Depends(get_tracker)):
    """
    Overwrite log, tasks and settings with an exported document
    """
    try:
        document = await request.json()
    except ValueError:
        raise DataImportError("Invalid import file: body is not valid JSON")

    imported = import_state(tracker, document)
    return ImportResult(
        success=True,
        imported=imported,
        message="Data imported successfully"
    )
