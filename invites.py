"""
Invite generator: one single-page PDF per code, stamped onto an invite
template, returned as a ZIP.
"""

from __future__ import annotations

import io
import logging
import re
import time
import uuid
import zipfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from config import INVITE_LAYOUT, INVITE_TEMPLATES_DIR, QRCODE_BASE_DIR, TEMP_OUTPUT_DIR, InviteLayout
from data_loaders import Record, load_records
from errors import GenerationError, InputError
from qr import generate_qr_code
from storage import remove_path
from templates import resolve_template
from utils import invite_pdf_name, invite_zip_name, sanitize_filename

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def clean_qr_code(raw_code) -> str:
    """'ABC123;; ' -> 'ABC123'. Non-strings become ''."""
    if not isinstance(raw_code, str) or not raw_code:
        return ""
    return re.sub(r";+$", "", raw_code.strip()).strip()


def _first_value(record: Record) -> str:
    for value in record.values():
        return str(value or "")
    return ""


def load_invite_codes(records: List[Record]) -> List[str]:
    """
    Codes from the first column. The first record is a label row and is
    skipped (the header row is already consumed by the CSV reader).
    """
    rows = [r for r in records[1:] if _first_value(r).strip()]
    if not rows:
        raise InputError("The CSV file has no valid invite codes from the third line on.")
    codes = []
    for row in rows:
        code = clean_qr_code(_first_value(row))
        if not code:
            logger.warning("Skipping CSV row with an empty/invalid code: %s", row)
            continue
        codes.append(code)
    return codes


def new_session_name() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class GeneratedZip:
    filename: str
    data: bytes
    count: int


class InviteGenerator:
    """Generates invite PDFs with QR codes."""

    def __init__(
        self,
        csv_path: PathLike,
        template: str,
        original_filename: Optional[str] = None,
        templates_dir: PathLike = INVITE_TEMPLATES_DIR,
        qr_base_dir: PathLike = QRCODE_BASE_DIR,
        output_base_dir: PathLike = TEMP_OUTPUT_DIR,
        layout: InviteLayout = INVITE_LAYOUT,
        cleanup_input: bool = False,
    ):
        """
        Args:
            csv_path: Path to the uploaded CSV (codes in the first column)
            template: Invite template file name inside templates_dir
            original_filename: Name the user uploaded; names the ZIP
            cleanup_input: Delete csv_path when done (uploads only)
        """
        self.csv_path = Path(csv_path)
        self.template = template
        self.original_filename = original_filename or self.csv_path.name
        self.templates_dir = Path(templates_dir)
        self.qr_base_dir = Path(qr_base_dir)
        self.output_base_dir = Path(output_base_dir)
        self.layout = layout
        self.cleanup_input = cleanup_input

    def read_codes(self) -> List[str]:
        return load_invite_codes(load_records(self.csv_path))

    @staticmethod
    def read_template(template_path: Path) -> bytes:
        from pypdf import PdfReader
        from pypdf.errors import PdfReadError

        data = template_path.read_bytes()
        try:
            pages = len(PdfReader(io.BytesIO(data)).pages)
        except PdfReadError as e:
            raise InputError(f"Invite template {template_path.name} is not a valid PDF: {e}") from e
        if pages == 0:
            raise InputError(f"Invite template {template_path.name} has no pages.")
        return data

    def create_invite_pdf(self, template_bytes: bytes, qr_path: PathLike, code: str) -> bytes:
        """Fresh copy of the template with the QR and its code on page 1."""
        from pypdf import PdfReader, PdfWriter
        from reportlab.lib import colors
        from reportlab.pdfbase import pdfmetrics
        from reportlab.pdfgen import canvas

        reader = PdfReader(io.BytesIO(template_bytes))
        page = reader.pages[0]
        page_size = (float(page.mediabox.width), float(page.mediabox.height))

        x, y, width, height = self.layout.qr_box
        font, size = self.layout.font_name, self.layout.font_size
        overlay_buf = io.BytesIO()
        c = canvas.Canvas(overlay_buf, pagesize=page_size)
        c.drawImage(str(qr_path), x, y, width=width, height=height)
        text_width = pdfmetrics.stringWidth(code, font, size)
        c.setFillColor(colors.black)
        c.setFont(font, size)
        c.drawString(x + (width - text_width) / 2, self.layout.text_y, code)
        c.showPage()
        c.save()
        page.merge_page(PdfReader(overlay_buf).pages[0])

        writer = PdfWriter()
        for p in reader.pages:
            writer.add_page(p)
        out = io.BytesIO()
        writer.write(out)
        return out.getvalue()

    def zip_directory(self, directory: Path) -> bytes:
        """All files in `directory` in a ZIP (max compression)."""
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for path in sorted(directory.iterdir()):
                if path.is_file():
                    zf.write(path, arcname=path.name)
        return buf.getvalue()

    def generate(self) -> GeneratedZip:
        """Generate every invite and return the ZIP. Session folders are always removed."""
        session = new_session_name()
        pdf_dir = self.output_base_dir / session
        qr_dir = self.qr_base_dir / session
        try:
            pdf_dir.mkdir(parents=True, exist_ok=True)
            qr_dir.mkdir(parents=True, exist_ok=True)

            template_path = resolve_template(self.template, self.templates_dir)
            template_bytes = self.read_template(template_path)
            codes = self.read_codes()
            logger.info("Generating %d invite(s) from %s", len(codes), template_path.name)

            today = date.today()
            for code in codes:
                qr_path = qr_dir / f"{sanitize_filename(code)}.png"
                generate_qr_code(code, qr_path)
                pdf_bytes = self.create_invite_pdf(template_bytes, qr_path, code)
                (pdf_dir / invite_pdf_name(code, today)).write_bytes(pdf_bytes)

            files = [p for p in pdf_dir.iterdir() if p.is_file()]
            total_bytes = sum(p.stat().st_size for p in files)
            if total_bytes == 0:
                raise GenerationError(
                    "No invite could be generated. The generated files were empty or corrupted. "
                    "Check the CSV data and the PDF template."
                )
            logger.info("Generated %d file(s), %d bytes", len(files), total_bytes)
            return GeneratedZip(
                filename=invite_zip_name(self.original_filename),
                data=self.zip_directory(pdf_dir),
                count=len(files),
            )
        finally:
            remove_path(pdf_dir)
            remove_path(qr_dir)
            if self.cleanup_input:
                remove_path(self.csv_path)
