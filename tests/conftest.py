import io

import pytest


def make_pdf(path, pages=1, pagesize=None, label="Template"):
    """Write a simple multi-page PDF with reportlab and return its path."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    c = canvas.Canvas(str(path), pagesize=pagesize or A4)
    for i in range(pages):
        c.drawString(72, 72, f"{label} page {i + 1}")
        c.showPage()
    c.save()
    return path


def pdf_texts(data: bytes):
    from pypdf import PdfReader

    return [page.extract_text() or "" for page in PdfReader(io.BytesIO(data)).pages]


@pytest.fixture
def template_pdf(tmp_path):
    return make_pdf(tmp_path / "template1.pdf", pages=2)


@pytest.fixture
def canvas_calls(monkeypatch):
    """Record drawImage/drawString calls made on any reportlab canvas."""
    from reportlab.pdfgen import canvas

    calls = {"drawImage": [], "drawString": []}

    def _recorder(name):
        original = getattr(canvas.Canvas, name)

        def wrapper(self, *args, **kwargs):
            calls[name].append((args, kwargs))
            return original(self, *args, **kwargs)

        return wrapper

    for name in calls:
        monkeypatch.setattr(canvas.Canvas, name, _recorder(name))
    return calls
