"""
QR code generation for RSVP links
"""

import io
import qrcode

from app.services.rsvp_service import build_rsvp_link

class QRService:
    """Service for generating QR codes"""

    @staticmethod
    def generate_qr(data: str, format: str = 'PNG') -> bytes:
        """Render arbitrary text as a QR code image"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()

    @staticmethod
    def generate_rsvp_qr(slug: str, token: str) -> bytes:
        """QR code pointing at a guest's RSVP page"""
        return QRService.generate_qr(build_rsvp_link(slug, token))
