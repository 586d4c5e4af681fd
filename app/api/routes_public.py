"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.event import PublicEvent
from app.services import event_service
from app.services.excel_service import ExcelService
from app.utils.responses import success_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events/{slug}")
async def get_public_event(
    slug: str,
    db: Session = Depends(get_db)
):
    """Public event page data; only published events are visible"""
    event = event_service.get_public_event(db, slug)
    return success_response(
        message="Event retrieved successfully",
        data=PublicEvent.model_validate(event)
    )

@router.get("/template/guest_import_template.xlsx")
async def download_import_template():
    """Download the guest list import template"""
    template_bytes = ExcelService.create_template()

    return Response(
        content=template_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_import_template.xlsx"}
    )
