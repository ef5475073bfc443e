# qr_utils.py
import io
import logging
import os
import tempfile

import qrcode
from fpdf import FPDF

import config

logger = logging.getLogger(__name__)


# --- PAYLOAD ---
def build_qr_payload(equipment_id, base_url=None):
    """URL stored in an equipment's QR code. Set once at creation."""
    base_url = base_url or config.QR_BASE_URL
    return f"{base_url}{equipment_id}"


def equipment_id_from_scan(decoded_text):
    """Equipment id carried by a decoded QR/barcode: the last path segment of the URL.

    A bare id (USB scanner typing the id, or a plain barcode) is returned as is.
    """
    if not decoded_text:
        return None
    text = decoded_text.strip().split("?", 1)[0].rstrip("/")
    equipment_id = text.rsplit("/", 1)[-1].strip()
    return equipment_id or None


# --- IMAGES ---
def generate_qr(data):
    qr = qrcode.QRCode(box_size=10, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white")


def qr_png_bytes(data):
    img = generate_qr(data)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


# --- LABEL SHEET ---
def generate_qr_sheet(equipment):
    """Printable A4 sheet of QR labels (3 per row) for a list of equipment dicts."""
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    w, h = 60, 35
    cols = 3
    x_start, y_start = 10, 10
    col_counter, row_counter = 0, 0

    for item in equipment:
        x = x_start + (col_counter * w)
        y = y_start + (row_counter * h)

        if y + h > 280:
            pdf.add_page()
            col_counter, row_counter = 0, 0
            y, x = y_start, x_start

        pdf.rect(x, y, w, h)

        payload = item.get("qr_code") or build_qr_payload(item["id"])
        img = generate_qr(payload)

        # FPDF reopens the file by name, so it must be closed first (Windows)
        tmp_name = ""
        try:
            with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as tmp_file:
                img.save(tmp_file.name)
                tmp_name = tmp_file.name
            pdf.image(tmp_name, x=x + 2, y=y + 2, w=20, h=20)
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)

        pdf.set_xy(x + 24, y + 5)
        pdf.set_font("Helvetica", "B", 9)
        pdf.multi_cell(34, 4, text=f"{str(item['poste'])[:15]}\n{str(item.get('category') or '')[:15]}")

        pdf.set_xy(x + 24, y + 15)
        pdf.set_font("Helvetica", size=7)
        brand = f"{item.get('marque') or ''} {item.get('modele') or ''}".strip()
        pdf.cell(34, 4, text=brand[:22])
        pdf.set_xy(x + 24, y + 19)
        pdf.cell(34, 4, text=f"S/N: {item.get('numero_serie') or '-'}"[:22])

        col_counter += 1
        if col_counter >= cols:
            col_counter = 0
            row_counter += 1

    logger.info("Generated QR label sheet for %d items", len(equipment))
    return bytes(pdf.output())
