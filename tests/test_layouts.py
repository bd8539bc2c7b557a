import pytest

import layouts
from conftest import pdf_texts
from data_loaders import Voucher
from errors import FontRegistrationError, InputError
from qr import generate_qr_code
from utils import qr_asset_name


def _vouchers(n):
    return [Voucher(f"V{i}", "2025-12-31") for i in range(1, n + 1)]


def _write_qrs(qr_dir, vouchers):
    for v in vouchers:
        generate_qr_code(v.code, qr_dir / qr_asset_name(v.code, v.expiration_date))


def test_chunked_groups_of_three():
    groups = list(layouts.chunked(_vouchers(7), 3))
    assert [len(g) for g in groups] == [3, 3, 1]
    assert groups[2][0].code == "V7"


def test_etiqueta_31_vouchers_two_pages(tmp_path):
    # No QR files on disk: every label falls back to the placeholder.
    data = layouts.build_etiqueta_pdf(_vouchers(31), tmp_path, fonts=layouts.DEFAULT_FONTS)
    texts = pdf_texts(data)
    assert len(texts) == 2
    assert texts[0].count("O SEU VOUCHER") == 30
    assert texts[1].count("O SEU VOUCHER") == 1
    assert "QR N/A" in texts[1]
    assert "V31" in texts[1]


def test_etiqueta_with_qr_has_no_placeholder(tmp_path):
    vouchers = _vouchers(1)
    _write_qrs(tmp_path, vouchers)
    texts = pdf_texts(layouts.build_etiqueta_pdf(vouchers, tmp_path, fonts=layouts.DEFAULT_FONTS))
    assert len(texts) == 1
    assert "V1" in texts[0]
    assert "QR N/A" not in texts[0]


def test_etiqueta_empty_still_renders_a_page(tmp_path):
    assert len(pdf_texts(layouts.build_etiqueta_pdf([], tmp_path, fonts=layouts.DEFAULT_FONTS))) == 1


def test_voucher_pdf_repeats_trailing_pages(tmp_path, template_pdf):
    qr_dir = tmp_path / "qr"
    qr_dir.mkdir()
    vouchers = _vouchers(7)
    _write_qrs(qr_dir, vouchers)

    texts = pdf_texts(layouts.build_voucher_pdf(template_pdf, vouchers, qr_dir, fonts=layouts.DEFAULT_FONTS))
    # 3 groups x (stamped page 1 + template page 2)
    assert len(texts) == 6
    assert all(code in texts[0] for code in ("V1", "V2", "V3"))
    assert "2025-12-31" in texts[0]
    assert "Template page 2" in texts[1]
    assert "V7" in texts[4] and "V4" not in texts[4]
    assert "QR Code N/A" not in texts[0]


def test_voucher_pdf_missing_qr_uses_placeholder(tmp_path, template_pdf):
    qr_dir = tmp_path / "qr"
    qr_dir.mkdir()
    vouchers = _vouchers(2)
    _write_qrs(qr_dir, vouchers[:1])

    texts = pdf_texts(layouts.build_voucher_pdf(template_pdf, vouchers, qr_dir, fonts=layouts.DEFAULT_FONTS))
    assert len(texts) == 2
    assert "V1" in texts[0]
    assert "QR Code N/A" in texts[0]


def test_voucher_pdf_rejects_invalid_template(tmp_path):
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"this is not a pdf")
    with pytest.raises(InputError):
        layouts.build_voucher_pdf(bad, _vouchers(1), tmp_path, fonts=layouts.DEFAULT_FONTS)


def test_label_geometry_minimums():
    geo = layouts.label_geometry(10, 10)
    assert geo.qr_size == 20
    assert geo.code_box_height == 12
    assert geo.title_size == 6
    assert geo.code_size == 6


def test_label_geometry_a4_cell():
    geo = layouts.label_geometry(107.06, 130.31)
    assert geo.title_size == 8
    assert geo.qr_size <= 107.06 * 0.9
    assert geo.code_box_top + geo.code_box_height <= 130.31


def test_load_fonts_falls_back_to_helvetica(tmp_path):
    assert layouts.load_fonts(tmp_path, required=False) == layouts.DEFAULT_FONTS


def test_load_fonts_required_raises(tmp_path):
    with pytest.raises(FontRegistrationError):
        layouts.load_fonts(tmp_path, required=True)


def test_voucher_slot_anchors(tmp_path, template_pdf, canvas_calls):
    from reportlab.pdfbase import pdfmetrics

    qr_dir = tmp_path / "qr"
    qr_dir.mkdir()
    vouchers = _vouchers(3)
    _write_qrs(qr_dir, vouchers)
    canvas_calls["drawString"].clear()
    layouts.build_voucher_pdf(template_pdf, vouchers, qr_dir, fonts=layouts.DEFAULT_FONTS)

    images = [(args[1], args[2], kwargs["width"], kwargs["height"]) for args, kwargs in canvas_calls["drawImage"]]
    # y_base + 50 vertical adjustment
    assert images == [(441, 662, 70, 70), (441, 450, 70, 70), (441, 237, 70, 70)]

    strings = [args for args, _ in canvas_calls["drawString"]]
    code_x, code_y, code = strings[0]
    assert code == "V1"
    assert code_x == pytest.approx(476 - pdfmetrics.stringWidth("V1", "Helvetica-Bold", 9) / 2)
    assert code_y == pytest.approx(662 - 19 - pdfmetrics.getAscent("Helvetica-Bold", 9))

    date_x, date_y, date_text = strings[1]
    assert date_text == "*ativação válida até 2025-12-31"
    assert date_x == pytest.approx(476 - pdfmetrics.stringWidth(date_text, "Helvetica", 6) / 2)
    assert date_y == pytest.approx(662 - 19 - 53 - pdfmetrics.getAscent("Helvetica", 6))
