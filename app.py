#!/usr/bin/env python3
"""
Voucher Generator
Turns a CSV of voucher codes into a PDF: QR codes stamped onto a voucher
template (3 per page) or laid out on an A4 label sheet ("etiqueta").
Invites (one PDF per code, zipped) are generated by invites.py.
"""

from __future__ import annotations

import logging
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from config import (
    DEFAULT_PROMOTER_ID,
    DOWNLOADS_DIR,
    ETIQUETA_TEMPLATE,
    QRCODE_BASE_DIR,
    VOUCHER_TEMPLATES_DIR,
)
from data_loaders import Record, Voucher, load_records, voucher_from_record
from errors import InputError, VoucherError
from layouts import FontSet, build_etiqueta_pdf, build_voucher_pdf, load_fonts
from qr import build_qr_code_url, generate_qr_code
from storage import DownloadRegistry, ensure_directories, new_artifact_dir, remove_path
from templates import default_voucher_template, list_invite_templates, list_voucher_templates, resolve_template
from utils import create_folder_name, format_file_size, output_pdf_name, qr_asset_name

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@dataclass(frozen=True)
class GeneratedPdf:
    artifact_id: str
    filename: str
    path: Path
    size: int
    voucher_count: int

    @property
    def size_display(self) -> str:
        return format_file_size(self.size)


class VoucherGenerator:
    """Generates a voucher (or label sheet) PDF from a CSV."""

    def __init__(
        self,
        csv_path: str,
        template: str = ETIQUETA_TEMPLATE,
        original_filename: Optional[str] = None,
        promoter_id: Optional[str] = None,
        templates_dir: Path = VOUCHER_TEMPLATES_DIR,
        qr_base_dir: Path = QRCODE_BASE_DIR,
        downloads_dir: Path = DOWNLOADS_DIR,
        registry: Optional[DownloadRegistry] = None,
        fonts: Optional[FontSet] = None,
        cleanup_input: bool = False,
    ):
        """
        Initialize the generator.

        Args:
            csv_path: Path to the CSV file with voucher data
            template: Template file name in templates_dir, or 'etiqueta.pdf' for the label sheet
            original_filename: Name the user uploaded (names the output); defaults to csv_path's name
            promoter_id: Optional promoter id added to every QR URL
            registry: Where generated downloads are recorded (UI only)
            cleanup_input: Delete csv_path when done (uploads only)
        """
        self.csv_path = Path(csv_path)
        self.template = (template or "").strip()
        self.original_filename = original_filename or self.csv_path.name
        self.promoter_id = (promoter_id or "").strip() or DEFAULT_PROMOTER_ID
        self.templates_dir = Path(templates_dir)
        self.qr_base_dir = Path(qr_base_dir)
        self.downloads_dir = Path(downloads_dir)
        self.registry = registry
        self.fonts = fonts
        self.cleanup_input = cleanup_input

    @property
    def is_etiqueta(self) -> bool:
        return self.template == ETIQUETA_TEMPLATE

    def resolve_template(self) -> Optional[Path]:
        """Template file, or None for the label sheet. Raises InputError if unknown."""
        if self.is_etiqueta:
            return None
        return resolve_template(self.template, self.templates_dir)

    def read_records(self) -> List[Record]:
        return load_records(self.csv_path)

    def generate_qr_codes(self, records: List[Record], qr_dir: Path) -> List[Voucher]:
        """
        Write one QR PNG per usable row into qr_dir.
        Returns the vouchers in CSV order; incomplete rows are skipped.
        """
        vouchers = []
        for row in records:
            voucher = voucher_from_record(row)
            if voucher is None:
                logger.warning("Skipping CSV row without 'code' or 'expiration_date': %s", row)
                continue
            url = build_qr_code_url(row, self.promoter_id)
            generate_qr_code(url, qr_dir / qr_asset_name(voucher.code, voucher.expiration_date))
            vouchers.append(voucher)
        return vouchers

    def build_document(self, vouchers: List[Voucher], qr_dir: Path, template_path: Optional[Path], fonts: FontSet) -> bytes:
        if template_path is None:
            return build_etiqueta_pdf(vouchers, qr_dir, fonts)
        return build_voucher_pdf(template_path, vouchers, qr_dir, fonts)

    def build(self) -> Tuple[bytes, int]:
        """
        Run the pipeline and return (pdf bytes, voucher count).
        The QR folder (and the CSV, with cleanup_input) is removed either way.
        """
        folder = f"{create_folder_name(self.original_filename)}_{uuid.uuid4().hex[:8]}"
        qr_dir = self.qr_base_dir / folder
        try:
            template_path = self.resolve_template()
            fonts = self.fonts or load_fonts()
            records = self.read_records()

            qr_dir.mkdir(parents=True, exist_ok=True)
            vouchers = self.generate_qr_codes(records, qr_dir)
            if not vouchers:
                raise InputError("The CSV file has no rows with both 'code' and 'expiration_date'.")
            logger.info("Generated %d QR code(s) for %s", len(vouchers), self.original_filename)

            return self.build_document(vouchers, qr_dir, template_path, fonts), len(vouchers)
        finally:
            remove_path(qr_dir)
            if self.cleanup_input:
                remove_path(self.csv_path)

    def generate(self) -> GeneratedPdf:
        """Build the PDF and store it in its own folder under downloads_dir."""
        pdf_bytes, count = self.build()

        artifact_id, out_dir = new_artifact_dir(self.downloads_dir)
        filename = output_pdf_name(self.original_filename)
        out_path = out_dir / filename
        out_path.write_bytes(pdf_bytes)
        if self.registry is not None:
            self.registry.register(artifact_id, out_path, filename)
        logger.info("Saved %s (%d vouchers, %s)", out_path, count, format_file_size(len(pdf_bytes)))

        return GeneratedPdf(
            artifact_id=artifact_id,
            filename=filename,
            path=out_path,
            size=len(pdf_bytes),
            voucher_count=count,
        )


def main(argv=None):
    """Main entry point."""
    import argparse

    from invites import InviteGenerator

    parser = argparse.ArgumentParser(description="Generate voucher PDFs (or invite ZIPs) from a CSV")
    parser.add_argument("csv", help="Path to the CSV file")
    parser.add_argument("-t", "--template", default=None, help="Template file name (default: template1.pdf / first invite template)")
    parser.add_argument("-p", "--promoter", default=DEFAULT_PROMOTER_ID, help="Promoter id added to the QR URLs")
    parser.add_argument("-o", "--output", default="output", help="Output directory (default: output)")
    parser.add_argument("--invites", action="store_true", help="Generate invites (ZIP) instead of vouchers")

    args = parser.parse_args(argv)
    configure_logging()
    ensure_directories()
    output_dir = Path(args.output)

    try:
        if args.invites:
            templates = list_invite_templates()
            template = args.template or (templates[0] if templates else "")
            result = InviteGenerator(args.csv, template).generate()
            output_dir.mkdir(parents=True, exist_ok=True)
            out_path = output_dir / result.filename
            out_path.write_bytes(result.data)
            print(f"Completed! {result.count} invite(s) in '{out_path}'")
        else:
            template = args.template or default_voucher_template(list_voucher_templates())
            generator = VoucherGenerator(args.csv, template, promoter_id=args.promoter)
            pdf_bytes, count = generator.build()
            output_dir.mkdir(parents=True, exist_ok=True)
            out_path = output_dir / output_pdf_name(generator.original_filename)
            out_path.write_bytes(pdf_bytes)
            print(f"Completed! {count} voucher(s) in '{out_path}' ({format_file_size(len(pdf_bytes))})")
    except InputError as e:
        print(f"Error: {e}")
        sys.exit(2)
    except VoucherError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
