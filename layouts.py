"""
PDF layouts for vouchers.

Two modes:
- voucher: up to 3 vouchers (QR + code + expiration) stamped onto a copy of the
  first page of a template PDF, one templated page per group of 3.
- etiqueta: a 5x6 sheet of self-contained labels on blank A4 pages.

Geometry comes from the tables in config.py. reportlab draws the overlays,
pypdf merges them onto the template.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Sequence, TypeVar, Union

from config import (
    BRAND_COLOR,
    ETIQUETA_GRID,
    FONT_BOLD_FILE,
    FONT_DIR,
    FONT_REGULAR_FILE,
    REQUIRE_BRAND_FONTS,
    VOUCHER_LAYOUT,
    EtiquetaGrid,
    VoucherLayout,
    VoucherSlot,
)
from data_loaders import Voucher
from errors import AssetError, FontRegistrationError, InputError
from utils import qr_asset_name

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


class FontSet(NamedTuple):
    regular: str
    bold: str


DEFAULT_FONTS = FontSet("Helvetica", "Helvetica-Bold")


def load_fonts(font_dir: PathLike = FONT_DIR, required: bool = REQUIRE_BRAND_FONTS) -> FontSet:
    """
    Register the Poppins brand fonts with reportlab.

    Falls back to the built-in Helvetica family when the font files are not
    installed, unless `required` is set, in which case FontRegistrationError
    is raised.
    """
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFError, TTFont

    font_dir = Path(font_dir)
    regular_path = font_dir / FONT_REGULAR_FILE
    bold_path = font_dir / FONT_BOLD_FILE
    missing = [p.name for p in (regular_path, bold_path) if not p.exists()]
    if missing:
        if required:
            raise FontRegistrationError(f"Missing font files in {font_dir}: {', '.join(missing)}")
        logger.warning("Brand fonts not found in %s, using Helvetica", font_dir)
        return DEFAULT_FONTS

    fonts = FontSet(regular_path.stem, bold_path.stem)
    try:
        for name, path in zip(fonts, (regular_path, bold_path)):
            if name not in pdfmetrics.getRegisteredFontNames():
                pdfmetrics.registerFont(TTFont(name, str(path)))
    except (TTFError, OSError) as e:
        raise FontRegistrationError(f"Could not register fonts from {font_dir}: {e}") from e
    return fonts


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """[1..7], 3 -> [1,2,3], [4,5,6], [7]."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def _ascent(font: str, size: float) -> float:
    from reportlab.pdfbase import pdfmetrics

    return pdfmetrics.getAscent(font, size)


def _line_height(font: str, size: float) -> float:
    from reportlab.pdfbase import pdfmetrics

    ascent, descent = pdfmetrics.getAscentDescent(font, size)
    return ascent - descent


def _text_width(text: str, font: str, size: float) -> float:
    from reportlab.pdfbase import pdfmetrics

    return pdfmetrics.stringWidth(text, font, size)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def find_qr_asset(qr_dir: PathLike, voucher: Voucher) -> Path:
    path = Path(qr_dir) / qr_asset_name(voucher.code, voucher.expiration_date)
    if not path.exists():
        raise AssetError(f"QR code missing: {path}")
    return path


# === Voucher mode ===


def _draw_voucher_slot(c, voucher: Voucher, slot: VoucherSlot, qr_dir: PathLike, fonts: FontSet, layout: VoucherLayout) -> None:
    from reportlab.lib import colors

    brand = colors.HexColor(BRAND_COLOR)
    y_base = slot.y_base + layout.vertical_adjustment
    center_x = slot.x + slot.size / 2

    try:
        qr_path = find_qr_asset(qr_dir, voucher)
    except AssetError as e:
        logger.warning("%s", e)
        size = layout.placeholder_font_size
        c.setFillColor(colors.red)
        c.setFont(fonts.regular, size)
        c.drawCentredString(center_x, y_base + slot.size / 2 - _ascent(fonts.regular, size), layout.placeholder)
        return

    # QR image: bottom edge sits on y_base
    c.drawImage(str(qr_path), slot.x, y_base, width=slot.size, height=slot.size)

    # Code, centered under the QR
    code_top = y_base - layout.code_gap
    size = layout.code_font_size
    code_width = _text_width(voucher.code, fonts.bold, size)
    c.setFillColor(brand)
    c.setFont(fonts.bold, size)
    c.drawString(center_x - code_width / 2, code_top - _ascent(fonts.bold, size), voucher.code)

    # Expiration, on a white box masking the template artwork
    date_text = layout.date_label.format(date=voucher.expiration_date)
    date_top = code_top - layout.date_gap
    size = layout.date_font_size
    date_width = _text_width(date_text, fonts.regular, size)
    date_x = center_x - date_width / 2
    c.setFillColor(colors.white)
    c.rect(
        date_x - layout.date_padding,
        date_top + 2 - layout.date_box_height,
        date_width + layout.date_padding * 2,
        layout.date_box_height,
        stroke=0,
        fill=1,
    )
    c.setFillColor(brand)
    c.setFont(fonts.regular, size)
    c.drawString(date_x, date_top - _ascent(fonts.regular, size), date_text)


def render_voucher_overlay(
    vouchers: Sequence[Voucher],
    page_size: tuple,
    qr_dir: PathLike,
    fonts: FontSet = DEFAULT_FONTS,
    layout: VoucherLayout = VOUCHER_LAYOUT,
) -> bytes:
    """One transparent page with up to len(layout.slots) vouchers drawn on it."""
    from reportlab.pdfgen import canvas

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=page_size)
    for voucher, slot in zip(vouchers, layout.slots):
        _draw_voucher_slot(c, voucher, slot, qr_dir, fonts, layout)
    c.showPage()
    c.save()
    return buf.getvalue()


def build_voucher_pdf(
    template_path: PathLike,
    vouchers: Sequence[Voucher],
    qr_dir: PathLike,
    fonts: Optional[FontSet] = None,
    layout: VoucherLayout = VOUCHER_LAYOUT,
) -> bytes:
    """
    Stamp vouchers onto copies of the template's first page, 3 per page.

    Every page after the first in the template is appended after each stamped
    page, so a 2-page template with 9 vouchers yields 6 pages.
    """
    from pypdf import PdfReader, PdfWriter
    from pypdf.errors import PdfReadError

    fonts = fonts or load_fonts()
    template_bytes = Path(template_path).read_bytes()
    try:
        template = PdfReader(io.BytesIO(template_bytes))
        page_count = len(template.pages)
    except PdfReadError as e:
        raise InputError(f"Template {Path(template_path).name} is not a valid PDF: {e}") from e
    if page_count == 0:
        raise InputError(f"Template {Path(template_path).name} has no pages.")

    first = template.pages[0]
    page_size = (float(first.mediabox.width), float(first.mediabox.height))
    logger.info("Template %s: %d page(s), %.0fx%.0f", Path(template_path).name, page_count, *page_size)

    writer = PdfWriter()
    for group in chunked(vouchers, layout.per_page):
        overlay = PdfReader(io.BytesIO(render_voucher_overlay(group, page_size, qr_dir, fonts, layout))).pages[0]
        # merge_page mutates the page: read a fresh copy per group
        copy = PdfReader(io.BytesIO(template_bytes))
        page = copy.pages[0]
        page.merge_page(overlay)
        writer.add_page(page)
        for extra in copy.pages[1:]:
            writer.add_page(extra)

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


# === Etiqueta mode ===


class LabelGeometry(NamedTuple):
    """Offsets inside one label cell, measured from its top-left corner."""

    title_size: float
    title_height: float
    title_top: float
    qr_size: float
    qr_x: float
    qr_top: float
    code_box_x: float
    code_box_top: float
    code_box_width: float
    code_box_height: float
    code_size: float


def label_geometry(cell_w: float, cell_h: float, fonts: FontSet = DEFAULT_FONTS, grid: EtiquetaGrid = ETIQUETA_GRID) -> LabelGeometry:
    padding_top = cell_h * grid.padding_top_ratio
    padding_bottom = cell_h * grid.padding_bottom_ratio
    after_qr = cell_h * grid.qr_to_title_ratio
    after_title = cell_h * grid.title_to_code_box_ratio

    title_size = _clamp(cell_h * grid.title_font_ratio, grid.min_font_size, grid.max_font_size)
    title_height = _line_height(fonts.bold, title_size)
    code_box_height = max(grid.min_code_box_height, cell_h * grid.code_box_height_ratio)

    available = cell_h - padding_top - title_height - code_box_height - after_qr - after_title - padding_bottom
    available = max(grid.min_qr_size, available)
    qr_size = max(grid.min_qr_size, min(cell_w * grid.qr_width_ratio, available))

    title_top = padding_top + qr_size + after_qr
    code_box_width = cell_w * grid.code_box_width_ratio
    return LabelGeometry(
        title_size=title_size,
        title_height=title_height,
        title_top=title_top,
        qr_size=qr_size,
        qr_x=(cell_w - qr_size) / 2,
        qr_top=padding_top,
        code_box_x=(cell_w - code_box_width) / 2,
        code_box_top=title_top + title_height + after_title,
        code_box_width=code_box_width,
        code_box_height=code_box_height,
        code_size=_clamp(code_box_height * grid.code_font_ratio, grid.min_font_size, grid.max_font_size),
    )


def _draw_label(c, voucher: Voucher, x: float, top: float, cell_w: float, cell_h: float, geo: LabelGeometry, qr_dir: PathLike, fonts: FontSet, grid: EtiquetaGrid) -> None:
    """Draw one label; `top` is the cell's top edge in page coordinates."""
    from reportlab.lib import colors

    brand = colors.HexColor(BRAND_COLOR)

    c.setStrokeColor(brand)
    c.setLineWidth(grid.border_width)
    c.rect(x, top - cell_h, cell_w, cell_h, stroke=1, fill=0)

    qr_left = x + geo.qr_x
    try:
        qr_path = find_qr_asset(qr_dir, voucher)
        c.drawImage(str(qr_path), qr_left, top - geo.qr_top - geo.qr_size, width=geo.qr_size, height=geo.qr_size)
    except AssetError as e:
        logger.warning("%s", e)
        size = max(grid.min_font_size, geo.qr_size * grid.placeholder_font_ratio)
        text_top = geo.qr_top + (geo.qr_size - _line_height(fonts.regular, size)) / 2
        c.setFillColor(colors.red)
        c.setFont(fonts.regular, size)
        c.drawCentredString(qr_left + geo.qr_size / 2, top - text_top - _ascent(fonts.regular, size), grid.placeholder)

    c.setFillColor(brand)
    c.setFont(fonts.bold, geo.title_size)
    c.drawCentredString(x + cell_w / 2, top - geo.title_top - _ascent(fonts.bold, geo.title_size), grid.title)

    box_left = x + geo.code_box_x
    box_top = top - geo.code_box_top
    c.setLineWidth(grid.code_box_border_width)
    c.rect(box_left, box_top - geo.code_box_height, geo.code_box_width, geo.code_box_height, stroke=1, fill=0)

    text_top = (geo.code_box_height - _line_height(fonts.regular, geo.code_size)) / 2
    c.setFont(fonts.regular, geo.code_size)
    c.drawCentredString(box_left + geo.code_box_width / 2, box_top - text_top - _ascent(fonts.regular, geo.code_size), voucher.code)


def build_etiqueta_pdf(
    vouchers: Sequence[Voucher],
    qr_dir: PathLike,
    fonts: Optional[FontSet] = None,
    grid: EtiquetaGrid = ETIQUETA_GRID,
) -> bytes:
    """Label sheet: A4 pages, grid.columns x grid.rows cells filled row-major."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    fonts = fonts or load_fonts()
    page_w, page_h = A4
    content_w = page_w - 2 * grid.margin
    content_h = page_h - 2 * grid.margin
    cell_w = (content_w - grid.column_gap * (grid.columns - 1)) / grid.columns
    cell_h = (content_h - grid.row_gap * (grid.rows - 1)) / grid.rows
    geo = label_geometry(cell_w, cell_h, fonts, grid)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    pages = list(chunked(vouchers, grid.per_page)) or [[]]
    for page_vouchers in pages:
        for i, voucher in enumerate(page_vouchers):
            row, col = divmod(i, grid.columns)
            x = grid.margin + col * (cell_w + grid.column_gap)
            top = page_h - grid.margin - row * (cell_h + grid.row_gap)
            _draw_label(c, voucher, x, top, cell_w, cell_h, geo, qr_dir, fonts, grid)
        c.showPage()
    c.save()
    logger.info("Etiqueta sheet: %d label(s) on %d page(s)", len(vouchers), len(pages))
    return buf.getvalue()
