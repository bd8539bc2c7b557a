#!/usr/bin/env python3
"""
Streamlit UI for the Voucher Generator
"""

import time
import traceback
from pathlib import Path
from typing import List, Optional

import streamlit as st

from config import (
    INVITE_TEMPLATES_DIR,
    MAX_FILE_AGE_SECONDS,
    PREVIEW_COLUMNS_DESKTOP,
    PREVIEW_COLUMNS_MOBILE,
    PREVIEW_WIDTH_DESKTOP,
    PREVIEW_WIDTH_MOBILE,
    VOUCHER_TEMPLATES_DIR,
)
from errors import InputError, VoucherError
from storage import DownloadRegistry, Janitor, ensure_directories, read_artifact, save_upload
from templates import (
    default_voucher_template,
    ensure_preview,
    list_invite_templates,
    list_voucher_templates,
)
from utils import format_file_size

# Startup timing (logged to stdout for Streamlit Cloud logs)
_UI_T0 = time.perf_counter()
def _ui_log(msg: str) -> None:
    print(f"[ui] +{time.perf_counter() - _UI_T0:.3f}s {msg}", flush=True)

_ui_log("ui.py start")

# Page config
st.set_page_config(
    page_title="Gerador de Vouchers - MS Saúde",
    page_icon="🎫",
    layout="centered"
)

# Simple CSS to keep the app readable on mobile
st.markdown(
    """
<style>
  button, input, textarea, select {
    border-radius: 8px !important;
  }
  .main .block-container {
    max-width: 760px;
    padding-top: 1rem;
    padding-bottom: 2.5rem;
  }
  @media (max-width: 640px) {
    .main .block-container {
      padding-left: 0.75rem;
      padding-right: 0.75rem;
    }
  }
</style>
""",
    unsafe_allow_html=True,
)

# --- Header ---
st.markdown(
    """
<div style="margin-top: 0.25rem; margin-bottom: 0.25rem;">
  <div style="font-size: 1.8rem; font-weight: 750; line-height: 1.15; color: #164769;">
    Gerador de Vouchers
  </div>
  <div style="font-size: 1.05rem; opacity: 0.8; margin-top: 0.2rem;">
    Vouchers, etiquetas e convites com QR code a partir de um ficheiro CSV
  </div>
</div>
""",
    unsafe_allow_html=True,
)
_ui_log("rendered header")


@st.cache_resource
def _services():
    """One download registry + cleanup thread per server process."""
    from app import configure_logging

    configure_logging()
    ensure_directories()
    registry = DownloadRegistry()
    janitor = Janitor(registry)
    janitor.run_once()
    janitor.start()
    return registry, janitor


@st.cache_data(show_spinner=False)
def _preview_for(template_path: str) -> Optional[str]:
    p = ensure_preview(template_path)
    return str(p) if p else None


registry, _janitor = _services()
_ui_log("services ready")

# Initialize session state
if "generated_artifact_id" not in st.session_state:
    st.session_state.generated_artifact_id = None
if "generated_zip" not in st.session_state:
    # {"zip_bytes": bytes, "zip_name": str, "count": int}
    st.session_state.generated_zip = None

mobile_mode = st.checkbox("Layout para telemóvel", value=False, help="Reduz as secções com várias colunas em ecrãs pequenos.")
columns_per_row = PREVIEW_COLUMNS_MOBILE if mobile_mode else PREVIEW_COLUMNS_DESKTOP
preview_width = PREVIEW_WIDTH_MOBILE if mobile_mode else PREVIEW_WIDTH_DESKTOP


def _render_previews(templates: List[str], templates_dir: Path) -> None:
    for start in range(0, len(templates), columns_per_row):
        row_items = templates[start : start + columns_per_row]
        cols = st.columns(columns_per_row)
        for c, name in enumerate(row_items):
            with cols[c]:
                preview = _preview_for(str(templates_dir / name))
                if preview:
                    st.image(preview, width=preview_width)
                else:
                    st.caption("(sem pré-visualização)")
                st.caption(name)


def _template_label(name: str) -> str:
    return Path(name).stem


tab_vouchers, tab_invites = st.tabs(["🎫 Vouchers", "✉️ Convites"])

with tab_vouchers:
    templates = list_voucher_templates()
    default_template = default_voucher_template(templates)

    st.markdown("#### Templates")
    _render_previews(templates, VOUCHER_TEMPLATES_DIR)

    with st.form("voucher_form", clear_on_submit=False):
        template = st.radio(
            "Template",
            options=templates,
            index=templates.index(default_template),
            horizontal=True,
            format_func=_template_label,
        )
        promoter_id = st.text_input("ID do Promotor (opcional)", value="", placeholder="Ex: 123 ou deixe vazio")
        csv_file = st.file_uploader("Ficheiro CSV", type=["csv"], key="voucher_csv")
        generate = st.form_submit_button("🚀 Gerar Vouchers", type="primary", use_container_width=True)

    if generate:
        st.session_state.generated_artifact_id = None
        if csv_file is None:
            st.warning("Nenhum arquivo CSV enviado.")
        else:
            try:
                # Import heavy rendering code only when needed (improves Streamlit Cloud startup)
                from app import VoucherGenerator

                upload_path = save_upload(csv_file.getvalue(), csv_file.name)
                with st.spinner("A gerar vouchers..."):
                    result = VoucherGenerator(
                        str(upload_path),
                        template,
                        original_filename=csv_file.name,
                        promoter_id=promoter_id,
                        registry=registry,
                        cleanup_input=True,
                    ).generate()
                st.session_state.generated_artifact_id = result.artifact_id
            except InputError as e:
                st.warning(str(e))
            except VoucherError as e:
                st.error(f"Erro no processamento: {e}")
            except OSError as e:
                st.error(f"Erro ao escrever ficheiros: {e}")
            except Exception as e:
                st.error(f"Erro inesperado no processamento: {e}")
                st.code(traceback.format_exc())

    if st.session_state.generated_artifact_id:
        artifact = registry.get(st.session_state.generated_artifact_id)
        pdf_bytes = read_artifact(artifact) if artifact is not None else None
        if pdf_bytes is None:
            st.info("O ficheiro gerado já expirou. Gere os vouchers novamente.")
        else:
            st.success("Vouchers gerados com sucesso! O seu PDF está pronto para download.")
            st.markdown(f"**{artifact.filename}** · 📄 {format_file_size(len(pdf_bytes))}")
            st.download_button(
                "⬇️ Baixar PDF",
                data=pdf_bytes,
                file_name=artifact.filename,
                mime="application/pdf",
                key=f"dl_pdf_{artifact.artifact_id}",
                use_container_width=True,
            )

    recent = registry.list()
    if recent:
        with st.expander(f"Downloads recentes ({len(recent)})", expanded=False):
            st.caption("Os ficheiros são removidos automaticamente após alguns minutos.")
            for artifact in recent:
                data = read_artifact(artifact)
                if data is None:
                    continue
                st.download_button(
                    f"⬇️ {artifact.filename} ({format_file_size(len(data))})",
                    data=data,
                    file_name=artifact.filename,
                    mime="application/pdf",
                    key=f"dl_recent_{artifact.artifact_id}",
                )

with tab_invites:
    invite_templates = list_invite_templates()

    st.markdown("#### 1. Selecione o Modelo")
    if not invite_templates:
        st.warning(f"Nenhum modelo de convite encontrado na pasta `{INVITE_TEMPLATES_DIR.name}`.")
    else:
        _render_previews(invite_templates, INVITE_TEMPLATES_DIR)

    with st.form("invite_form", clear_on_submit=False):
        invite_template = st.radio(
            "Modelo",
            options=invite_templates,
            horizontal=True,
            format_func=_template_label,
        ) if invite_templates else None
        st.markdown("#### 2. Carregue o Ficheiro CSV")
        st.caption("Os códigos são lidos da primeira coluna, a partir da terceira linha.")
        invite_csv = st.file_uploader("Ficheiro CSV", type=["csv"], key="invite_csv")
        generate_invites = st.form_submit_button(
            "Gerar Convites (ZIP)",
            type="primary",
            disabled=not invite_templates,
            use_container_width=True,
        )

    if generate_invites:
        st.session_state.generated_zip = None
        if invite_csv is None:
            st.warning("Nenhum ficheiro CSV foi enviado.")
        else:
            try:
                from invites import InviteGenerator

                upload_path = save_upload(invite_csv.getvalue(), invite_csv.name)
                with st.spinner("A gerar convites..."):
                    result = InviteGenerator(
                        str(upload_path),
                        invite_template or "",
                        original_filename=invite_csv.name,
                        cleanup_input=True,
                    ).generate()
                st.session_state.generated_zip = {
                    "zip_bytes": result.data,
                    "zip_name": result.filename,
                    "count": result.count,
                }
            except InputError as e:
                st.warning(str(e))
            except VoucherError as e:
                st.error(f"Ocorreu um erro: {e}")
            except OSError as e:
                st.error(f"Erro ao escrever ficheiros: {e}")
            except Exception as e:
                st.error(f"Erro inesperado durante o processamento de convites: {e}")
                st.code(traceback.format_exc())

    if st.session_state.generated_zip is not None:
        z = st.session_state.generated_zip
        st.success(f"**{z['count']}** convite(s) gerado(s).")
        st.download_button(
            "⬇️ Baixar ZIP",
            data=z["zip_bytes"],
            file_name=z["zip_name"],
            mime="application/zip",
            key="dl_zip",
            use_container_width=True,
        )

# Footer
st.markdown("---")
st.caption(f"Os ficheiros gerados são apagados automaticamente após {MAX_FILE_AGE_SECONDS // 60} minutos.")
