"""
QR payloads and QR image files.
"""

from pathlib import Path
from typing import Mapping, Optional, Union
from urllib.parse import quote_plus, urlencode

from config import QR_BASE_URL, QR_PIXEL_SIZE

# (query parameter, record field), in URL order
_URL_PARAMS = (
    ("plano", "public_id"),
    ("voucher", "code"),
    ("parceiro", "id_partner"),
)


def _form_quote(value, safe="", encoding=None, errors=None):
    """application/x-www-form-urlencoded as browsers write it: '*' kept, '~' escaped."""
    return quote_plus(value, safe="*", encoding=encoding, errors=errors).replace("~", "%7E")


def build_qr_code_url(record: Mapping[str, str], promoter_id: Optional[str] = None) -> str:
    """
    Build the sign-up URL encoded in a voucher's QR code.

    Parameters are appended in a fixed order (plano, voucher, parceiro, promotor)
    and only when their value is non-blank after trimming. With no parameters the
    bare base URL is returned (no '?').
    """
    params = []
    for param, field in _URL_PARAMS:
        value = str(record.get(field) or "").strip()
        if value:
            params.append((param, value))
    if promoter_id is not None and str(promoter_id).strip():
        params.append(("promotor", str(promoter_id).strip()))

    query = urlencode(params, quote_via=_form_quote)
    return f"{QR_BASE_URL}?{query}" if query else QR_BASE_URL


def generate_qr_code(data: str, output_path: Union[str, Path], size: int = QR_PIXEL_SIZE) -> None:
    """
    Render `data` as a PNG QR code at `output_path`.
    High error correction, 1-module border, black on white, size x size pixels.
    Raises OSError if the file can't be written.
    """
    import qrcode
    from PIL import Image

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white")
    img = qr_img.convert("RGB").resize((size, size), Image.Resampling.NEAREST)
    img.save(str(output_path), format="PNG")
