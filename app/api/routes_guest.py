"""
Guest-facing RSVP routes, authorized by the RSVP token alone
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import RsvpStatus
from app.schemas.rsvp import RsvpSubmit
from app.services import rsvp_service
from app.services.qr_service import QRService
from app.utils.security import rate_limit_check, get_client_ip
from app.utils.responses import success_response, rate_limit_response

router = APIRouter()

@router.get("/{token}")
async def get_rsvp(
    token: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """Guest and event details behind an invitation link"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    view = rsvp_service.get_rsvp(db, token)
    return success_response(
        message="Invitation found",
        data=view
    )

@router.post("/{token}")
async def submit_rsvp(
    token: str,
    submission: RsvpSubmit,
    request: Request,
    db: Session = Depends(get_db)
):
    """Confirm or decline an invitation"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    guest = rsvp_service.submit_rsvp(
        db,
        token,
        status=submission.status,
        plus_one_name=submission.plus_one_name,
        dietary=submission.dietary,
        notes=submission.notes,
    )

    message = (
        "Thank you for confirming your attendance!"
        if guest.rsvp_status == RsvpStatus.CONFIRMED.value
        else "We're sorry you can't make it. Your response has been recorded."
    )
    return success_response(
        message=message,
        data={
            "rsvp_status": guest.rsvp_status,
            "plus_one_name": guest.plus_one_name,
            "dietary": guest.dietary,
            "notes": guest.notes,
            "responded_at": guest.responded_at,
        }
    )

@router.get("/{token}/qr.png")
async def get_rsvp_qr(
    token: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """QR code of the invitation link, for guests forwarding it to a phone"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    view = rsvp_service.get_rsvp(db, token)
    qr_bytes = QRService.generate_rsvp_qr(view.event.slug, token)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": "inline; filename=rsvp.png"}
    )
