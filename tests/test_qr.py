import base64
import struct

from ticketgate.tickets.models import TicketIdentity
from ticketgate.tickets.qr import render_qr_data_url, render_qr_png

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
IDENTITY = TicketIdentity(
    ticket_id="12345",
    contract_address="0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14",
    network_id="84532",
)


def _png_size(png: bytes) -> tuple[int, int]:
    # IHDR is always the first chunk: width and height follow the chunk type
    return struct.unpack(">II", png[16:24])


def test_render_qr_png_returns_png_bytes():
    png = render_qr_png(IDENTITY, box_size=4, border=2)

    assert png.startswith(PNG_SIGNATURE)
    width, height = _png_size(png)
    assert width == height
    assert width % 4 == 0


def test_box_size_scales_the_image():
    small_width, _ = _png_size(render_qr_png(IDENTITY, box_size=2, border=2))
    large_width, _ = _png_size(render_qr_png(IDENTITY, box_size=12, border=2))

    assert large_width == small_width * 6


def test_render_qr_data_url_embeds_png():
    url = render_qr_data_url(IDENTITY, box_size=4)

    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]).startswith(PNG_SIGNATURE)
