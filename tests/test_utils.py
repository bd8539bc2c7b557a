from datetime import date

from utils import (
    create_folder_name,
    csv_base_name,
    format_file_size,
    invite_pdf_name,
    invite_zip_name,
    output_pdf_name,
    qr_asset_name,
    sanitize_filename,
)


def test_sanitize_filename_strips_reserved_chars():
    assert sanitize_filename("  A/B:C*D?  ") == "  ABCD"
    assert sanitize_filename('x<y>z|"w"') == "xyzw"


def test_sanitize_filename_rejects_dot_and_device_names():
    assert sanitize_filename("..") == ""
    assert sanitize_filename("con.txt") == ""
    assert sanitize_filename("report. ") == "report"


def test_sanitize_filename_truncates_utf8_bytes():
    assert len(sanitize_filename("é" * 200).encode("utf-8")) <= 255


def test_csv_base_name_fallback():
    assert csv_base_name("exports/promo.csv") == "promo"
    assert csv_base_name("") == "vouchers"


def test_output_names():
    today = date(2025, 3, 4)
    assert create_folder_name("uploads/promo.csv", today) == "promo_2025-03-04"
    assert output_pdf_name("promo.csv", today) == "promo_2025-03-04.pdf"
    assert qr_asset_name("V/1", "2025-12-31") == "qrcode_V1_2025-12-31.png"


def test_invite_names_no_zero_padding():
    assert invite_pdf_name("AB/C", date(2025, 3, 4)) == "ABC_4-3.pdf"
    assert invite_zip_name("lista.csv") == "Convites_lista.zip"


def test_format_file_size():
    assert format_file_size(2048) == "2 KB"
    assert format_file_size(1024 * 1024) == "1024 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.00 MB"
