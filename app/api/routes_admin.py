"""
Host API routes - requires authentication
"""

import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query, Form
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import ValidationError
from app.models import RsvpStatus
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventDetail
from app.schemas.guest import GuestCreate, GuestUpdate
from app.schemas.imports import ColumnMapping, ImportCommit, MappedImport, SheetSelection
from app.services import event_service, guest_service, import_service
from app.services.excel_service import ExcelService
from app.services.qr_service import QRService
from app.services.repositories import resolve_owned_guest
from app.utils.security import get_current_user_id
from app.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

def _event_detail(db: Session, event) -> EventDetail:
    base = EventResponse.model_validate(event)
    return EventDetail(**base.model_dump(), stats=guest_service.get_guest_stats(db, event.id))

def _form_mapping(
    mapping_json: Optional[str],
    name_column: Optional[str],
    email_column: Optional[str],
    phone_column: Optional[str],
    dietary_column: Optional[str],
    plus_one_column: Optional[str],
) -> Optional[ColumnMapping]:
    """Explicit mapping from multipart form fields, or None to auto-detect"""
    if mapping_json:
        try:
            return ColumnMapping(**json.loads(mapping_json))
        except (ValueError, TypeError, PydanticValidationError) as e:
            raise ValidationError("Invalid column mapping") from e

    columns = {
        "name": name_column,
        "email": email_column,
        "phone": phone_column,
        "dietary": dietary_column,
        "plus_one": plus_one_column,
    }
    if not any(columns.values()):
        return None
    return ColumnMapping(**columns)

# -------- Events --------

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Create a new event"""
    event = event_service.create_event(db, user_id, event_data)
    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event),
        status_code=201
    )

@router.get("/events")
async def list_events(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """List the host's events, newest first"""
    events = [
        {**EventResponse.model_validate(event).model_dump(), "guest_count": guest_count}
        for event, guest_count in event_service.list_events(db, user_id)
    ]
    return success_response(
        message="Events retrieved successfully",
        data={"events": events}
    )

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get event information with RSVP counters"""
    event = event_service.get_event(db, user_id, event_id)
    return success_response(
        message="Event details retrieved",
        data=_event_detail(db, event)
    )

@router.patch("/events/{event_id}")
async def update_event(
    event_id: str,
    event_update: EventUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Update event details, template or publication state"""
    event = event_service.update_event(db, user_id, event_id, event_update)
    return success_response(
        message="Event updated successfully",
        data=EventResponse.model_validate(event)
    )

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete an event and all of its guests"""
    event_service.delete_event(db, user_id, event_id)
    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.get("/events/{event_id}/export.xlsx")
async def export_guests(
    event_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Export the guest list with RSVP state and links"""
    event = event_service.get_event(db, user_id, event_id)
    excel_content = ExcelService.export_guests(event)

    return Response(
        content=excel_content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=guests_{event.slug}.xlsx"}
    )

# -------- Guests --------

@router.get("/events/{event_id}/guests")
async def search_guests(
    event_id: str,
    status: Optional[RsvpStatus] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Search and list guests for an event"""
    event = event_service.get_event(db, user_id, event_id)
    guests, total = guest_service.list_guests(
        db, user_id, event_id,
        status=status.value if status else None,
        search=search,
        page=page,
        per_page=per_page,
    )

    return success_response(
        message="Guests retrieved successfully",
        data={
            "guests": [guest_service.guest_to_response(guest, event.slug) for guest in guests],
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "pages": (total + per_page - 1) // per_page
            }
        }
    )

@router.post("/events/{event_id}/guests")
async def create_guest(
    event_id: str,
    guest_data: GuestCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Manually add one guest"""
    guest = guest_service.create_guest(db, user_id, event_id, guest_data)
    return success_response(
        message="Guest added successfully",
        data=guest_service.guest_to_response(guest, guest.event.slug),
        status_code=201
    )

@router.patch("/guests/{guest_id}")
async def update_guest(
    guest_id: str,
    guest_update: GuestUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Update guest information"""
    guest = guest_service.update_guest(db, user_id, guest_id, guest_update)
    return success_response(
        message="Guest updated successfully",
        data=guest_service.guest_to_response(guest, guest.event.slug)
    )

@router.delete("/guests/{guest_id}")
async def delete_guest(
    guest_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Remove a guest"""
    guest_service.delete_guest(db, user_id, guest_id)
    return success_response(
        message="Guest deleted successfully",
        data={"deleted_guest_id": guest_id}
    )

@router.get("/guests/{guest_id}/qr.png")
async def get_guest_qr(
    guest_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """QR code of a guest's RSVP link"""
    guest = resolve_owned_guest(db, guest_id, user_id)
    qr_bytes = QRService.generate_rsvp_qr(guest.event.slug, guest.rsvp_token)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=rsvp_{guest.id}.png"}
    )

# -------- Imports --------

@router.post("/events/{event_id}/guests/import")
async def import_guests(
    event_id: str,
    file: UploadFile = File(...),
    sheet: Optional[str] = Form(None),
    mapping: Optional[str] = Form(None),
    name_column: Optional[str] = Form(None),
    email_column: Optional[str] = Form(None),
    phone_column: Optional[str] = Form(None),
    dietary_column: Optional[str] = Form(None),
    plus_one_column: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Upload and import a guest file in one step"""
    column_mapping = _form_mapping(
        mapping, name_column, email_column, phone_column, dietary_column, plus_one_column
    )
    file_content = await file.read()

    result = import_service.import_guests(
        db, user_id, event_id, file_content, file.filename,
        sheet=sheet,
        mapping=column_mapping,
    )

    if result.needs_sheet_selection:
        return success_response(
            message="The file has several sheets. Choose the one with the guest list.",
            data=result
        )

    return success_response(
        message=f"{result.imported} guests imported, {result.skipped} rows skipped.",
        data=result
    )

@router.post("/events/{event_id}/guests/import-mapped")
async def import_mapped_guests(
    event_id: str,
    payload: MappedImport,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Import rows the client already mapped to guest fields"""
    result = import_service.import_mapped_rows(db, user_id, event_id, payload.guests)
    return success_response(
        message=f"{result.imported} guests imported, {result.skipped} rows skipped.",
        data=result
    )

@router.post("/events/{event_id}/imports")
async def upload_guest_file(
    event_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """First wizard step: store the file and suggest a column mapping"""
    file_content = await file.read()
    preview = import_service.create_upload(db, user_id, event_id, file_content, file.filename)
    return success_response(
        message="File uploaded. Confirm the sheet and column mapping to import.",
        data=preview,
        status_code=201
    )

@router.post("/imports/{upload_id}/preview")
async def preview_guest_file(
    upload_id: str,
    selection: SheetSelection,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Headers, suggested mapping and sample rows of a chosen sheet"""
    preview = import_service.preview_upload(db, user_id, upload_id, selection.sheet)
    return success_response(message="Sheet preview", data=preview)

@router.post("/imports/{upload_id}/commit")
async def commit_guest_file(
    upload_id: str,
    commit: ImportCommit,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Second wizard step: import with the confirmed sheet and mapping"""
    result = import_service.commit_upload(
        db, user_id, upload_id,
        sheet=commit.sheet,
        mapping=commit.mapping,
    )

    if result.needs_sheet_selection:
        return success_response(
            message="The file has several sheets. Choose the one with the guest list.",
            data=result
        )

    return success_response(
        message=f"{result.imported} guests imported, {result.skipped} rows skipped.",
        data=result
    )
