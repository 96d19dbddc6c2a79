from __future__ import annotations

import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from . import codec
from .models import TicketIdentity


def render_qr_png(identity: TicketIdentity, *, box_size: int = 10, border: int = 2) -> bytes:
    """Render the entry QR code for ``identity`` as PNG bytes."""

    qr = qrcode.QRCode(version=None, error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(codec.encode(identity))
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    image.save(buffer)
    return buffer.getvalue()


def render_qr_data_url(identity: TicketIdentity, *, box_size: int = 10, border: int = 2) -> str:
    png = render_qr_png(identity, box_size=box_size, border=border)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
