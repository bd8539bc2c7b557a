"""
Streamlit entrypoint for the voucher generator.

`streamlit run streamlit_app.py` (and Streamlit Cloud) start here. The CLI lives in `app.py`
and the page itself in `ui.py`; this file only loads ui.py and reports startup problems.
"""

import time
_T0 = time.perf_counter()

def _log(msg: str) -> None:
    # Hosting platforms capture stdout in their logs.
    print(f"[startup] +{time.perf_counter() - _T0:.3f}s {msg}", flush=True)

_log("streamlit_app.py start")

import streamlit as st
_log("imported streamlit")


def _load_ui():
    import importlib.util
    import sys
    from pathlib import Path

    app_dir = Path(__file__).resolve().parent
    if str(app_dir) not in sys.path:
        sys.path.insert(0, str(app_dir))

    ui_path = app_dir / "ui.py"
    if not ui_path.exists():
        raise FileNotFoundError(f"Missing ui.py at {ui_path}")

    # Load by path under a private name so an installed "ui" package cannot shadow it.
    module_spec = importlib.util.spec_from_file_location("vouchers_ui", ui_path)
    if module_spec is None or module_spec.loader is None:
        raise RuntimeError(f"Could not load module spec for {ui_path}")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return ui_path


try:
    _log("loading ui.py")
    loaded = _load_ui()
    _log(f"loaded ui from {loaded}")
except Exception as e:
    # An import error would otherwise leave a blank page.
    st.error("A aplicação não arrancou. Detalhes abaixo.")
    st.exception(e)
    _log(f"startup failed: {type(e).__name__}")
