from pathlib import Path

import storage

UI_PATH = Path(__file__).resolve().parents[1] / "ui.py"


class _IdleJanitor:
    def __init__(self, *args, **kwargs):
        pass

    def run_once(self, now=None):
        return 0

    def start(self):
        return self


def test_ui_renders_portuguese_labels(monkeypatch):
    from streamlit.testing.v1 import AppTest

    # Keep the page from touching the real data directories.
    monkeypatch.setattr(storage, "ensure_directories", lambda *_a, **_k: None)
    monkeypatch.setattr(storage, "Janitor", _IdleJanitor)

    at = AppTest.from_file(str(UI_PATH), default_timeout=30).run()
    assert not at.exception
    assert at.checkbox[0].label == "Layout para telemóvel"
    assert any("apagados automaticamente após 7 minutos" in c.value for c in at.caption)
