"""
Central configuration for the voucher generator.

Keep runtime-safe (no secrets).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

_APP_DIR = Path(__file__).resolve().parent

# Static assets shipped with the app
ASSETS_DIR = _APP_DIR / "assets"
VOUCHER_TEMPLATES_DIR = ASSETS_DIR / "voucher_pdf"
INVITE_TEMPLATES_DIR = ASSETS_DIR / "convite_pdf"
PREVIEW_DIR = ASSETS_DIR / "previews"
FONT_DIR = ASSETS_DIR / "fonts" / "Poppins"

# Runtime directories (point VOUCHERS_DATA_DIR at /tmp on read-only hosts)
DATA_DIR = Path(os.environ.get("VOUCHERS_DATA_DIR") or (_APP_DIR / "data"))
UPLOAD_DIR = DATA_DIR / "uploads"
QRCODE_BASE_DIR = DATA_DIR / "qrcodes"
TEMP_OUTPUT_DIR = DATA_DIR / "temp_output"
DOWNLOADS_DIR = DATA_DIR / "downloads"

# QR payload
QR_BASE_URL = "https://www.misericordiassaude.pt/aderir"
DEFAULT_PROMOTER_ID = ""
QR_PIXEL_SIZE = 300

# Cleanup
MAX_FILE_AGE_SECONDS = 7 * 60
CLEANUP_INTERVAL_SECONDS = 60

# Templates
ETIQUETA_TEMPLATE = "etiqueta.pdf"
DEFAULT_VOUCHER_TEMPLATE = "template1.pdf"

# Fonts: Poppins when available, otherwise the built-in Helvetica family
FONT_REGULAR_FILE = "Poppins-Regular.ttf"
FONT_BOLD_FILE = "Poppins-Bold.ttf"
REQUIRE_BRAND_FONTS = os.environ.get("VOUCHERS_REQUIRE_FONTS", "").lower() in ("1", "true", "yes")

BRAND_COLOR = "#164769"

# UI
PREVIEW_COLUMNS_DESKTOP = 4
PREVIEW_COLUMNS_MOBILE = 2
PREVIEW_WIDTH_DESKTOP = 140
PREVIEW_WIDTH_MOBILE = 200


@dataclass(frozen=True)
class VoucherSlot:
    """Anchor of one voucher on a templated page (PDF points, origin bottom-left)."""

    x: float
    y_base: float  # bottom edge of the QR image, before the global adjustment
    size: float
    offset: float  # spacing hint kept for template authors


@dataclass(frozen=True)
class VoucherLayout:
    slots: Tuple[VoucherSlot, ...]
    vertical_adjustment: float = 50  # positive moves everything up
    code_gap: float = 19  # QR bottom -> code text top
    date_gap: float = 53  # code text top -> date text top
    code_font_size: float = 9
    date_font_size: float = 6
    placeholder_font_size: float = 8
    date_padding: float = 3
    date_box_height: float = 10
    date_label: str = "*ativação válida até {date}"
    placeholder: str = "QR Code N/A"

    @property
    def per_page(self) -> int:
        return len(self.slots)


VOUCHER_LAYOUT = VoucherLayout(
    slots=(
        VoucherSlot(441, 612, 70, 30),
        VoucherSlot(441, 400, 70, 30),
        VoucherSlot(441, 187, 70, 30),
    )
)


@dataclass(frozen=True)
class EtiquetaGrid:
    """Label sheet geometry. Ratios are relative to the cell size."""

    columns: int = 5
    rows: int = 6
    margin: float = 30
    column_gap: float = 0
    row_gap: float = 0
    border_width: float = 0.5
    code_box_border_width: float = 1
    padding_top_ratio: float = 0.05
    padding_bottom_ratio: float = 0.05
    qr_width_ratio: float = 0.9
    qr_to_title_ratio: float = 0.03
    title_to_code_box_ratio: float = 0.03
    code_box_height_ratio: float = 0.16
    code_box_width_ratio: float = 0.9
    title_font_ratio: float = 0.075
    code_font_ratio: float = 0.45
    placeholder_font_ratio: float = 0.12
    min_font_size: float = 6
    max_font_size: float = 8
    min_code_box_height: float = 12
    min_qr_size: float = 20
    title: str = "O SEU VOUCHER"
    placeholder: str = "QR N/A"

    @property
    def per_page(self) -> int:
        return self.columns * self.rows


ETIQUETA_GRID = EtiquetaGrid()


@dataclass(frozen=True)
class InviteLayout:
    qr_box: Tuple[float, float, float, float] = field(default=(563, 210, 100, 100))  # x, y, w, h
    text_y: float = 195
    font_name: str = "Helvetica-Bold"
    font_size: float = 12


INVITE_LAYOUT = InviteLayout()
