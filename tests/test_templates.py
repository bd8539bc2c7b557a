import subprocess

import pytest

import templates
from errors import InputError


def test_list_voucher_templates_etiqueta_first(tmp_path):
    for name in ("template2.pdf", "template1.pdf", "etiqueta.pdf", "notes.txt", "Promo.PDF"):
        (tmp_path / name).write_bytes(b"%PDF")
    names = templates.list_voucher_templates(tmp_path)
    assert names == ["etiqueta.pdf", "Promo.PDF", "template1.pdf", "template2.pdf"]
    assert templates.default_voucher_template(names) == "template1.pdf"


def test_list_templates_missing_directory(tmp_path):
    assert templates.list_voucher_templates(tmp_path / "nope") == ["etiqueta.pdf"]
    assert templates.list_invite_templates(tmp_path / "nope") == []
    assert templates.default_voucher_template(["etiqueta.pdf"]) == "etiqueta.pdf"


def test_resolve_template(tmp_path):
    (tmp_path / "template1.pdf").write_bytes(b"%PDF")
    assert templates.resolve_template(" template1.pdf ", tmp_path) == tmp_path / "template1.pdf"
    for bad in ("", None, "../template1.pdf", "sub/template1.pdf", "..", "missing.pdf"):
        with pytest.raises(InputError):
            templates.resolve_template(bad, tmp_path)


def test_ensure_preview_uses_existing_png(tmp_path):
    preview_dir = tmp_path / "previews"
    preview_dir.mkdir()
    (preview_dir / "template1.png").write_bytes(b"png")
    assert templates.ensure_preview(tmp_path / "template1.pdf", preview_dir) == preview_dir / "template1.png"


def test_ensure_preview_etiqueta_is_static(tmp_path):
    assert templates.ensure_preview(tmp_path / "etiqueta.pdf", tmp_path) is None


def test_ensure_preview_magick_failure_is_ignored(tmp_path, monkeypatch):
    pdf = tmp_path / "template1.pdf"
    pdf.write_bytes(b"%PDF")

    def _fail(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(templates.subprocess, "run", _fail)
    assert templates.ensure_preview(pdf, tmp_path / "previews") is None


def test_ensure_preview_runs_magick(tmp_path, monkeypatch):
    pdf = tmp_path / "template1.pdf"
    pdf.write_bytes(b"%PDF")
    calls = []

    def _fake_run(cmd, **kwargs):
        calls.append(cmd)
        (tmp_path / "previews" / "template1.png").write_bytes(b"png")

    monkeypatch.setattr(templates.subprocess, "run", _fake_run)
    out = templates.ensure_preview(pdf, tmp_path / "previews")
    assert out == tmp_path / "previews" / "template1.png"
    assert calls[0][:3] == ["magick", "-density", "150"]
    assert calls[0][3] == f"{pdf}[0]"
