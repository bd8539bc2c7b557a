"""
Template catalog and preview thumbnails.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from config import (
    DEFAULT_VOUCHER_TEMPLATE,
    ETIQUETA_TEMPLATE,
    INVITE_TEMPLATES_DIR,
    PREVIEW_DIR,
    VOUCHER_TEMPLATES_DIR,
)
from errors import InputError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _pdf_names(directory: PathLike) -> List[str]:
    d = Path(directory)
    if not d.is_dir():
        logger.warning("Template directory not found: %s", d)
        return []
    return sorted(p.name for p in d.iterdir() if p.is_file() and p.suffix.lower() == ".pdf")


def list_voucher_templates(directory: PathLike = VOUCHER_TEMPLATES_DIR) -> List[str]:
    """Voucher templates on disk, with the built-in label sheet first."""
    return [ETIQUETA_TEMPLATE] + [n for n in _pdf_names(directory) if n != ETIQUETA_TEMPLATE]


def default_voucher_template(templates: List[str]) -> str:
    if DEFAULT_VOUCHER_TEMPLATE in templates:
        return DEFAULT_VOUCHER_TEMPLATE
    return templates[0] if templates else ETIQUETA_TEMPLATE


def list_invite_templates(directory: PathLike = INVITE_TEMPLATES_DIR) -> List[str]:
    return _pdf_names(directory)


def resolve_template(name: Optional[str], directory: PathLike) -> Path:
    """
    Map a template name picked by the user to a file in `directory`.
    Rejects empty names, anything with a path component and missing files.
    """
    name = (name or "").strip()
    if not name:
        raise InputError("No template selected.")
    if Path(name).name != name or name in (".", ".."):
        raise InputError(f"Invalid template name: {name!r}")
    path = Path(directory) / name
    if not path.is_file():
        raise InputError(f"Template {name} not found.")
    return path


def preview_path(template_name: str, preview_dir: PathLike = PREVIEW_DIR) -> Path:
    return Path(preview_dir) / f"{Path(template_name).stem}.png"


def ensure_preview(template_path: PathLike, preview_dir: PathLike = PREVIEW_DIR) -> Optional[Path]:
    """
    Thumbnail of the first page of a template, rendered with ImageMagick.
    Best effort: returns None (and logs) when it can't be produced.
    """
    template_path = Path(template_path)
    out = preview_path(template_path.name, preview_dir)
    if out.exists():
        return out
    if template_path.name == ETIQUETA_TEMPLATE:
        logger.warning("Preview image %s not found. Please create one.", out.name)
        return None
    if not template_path.exists():
        logger.warning("Template %s not found, cannot generate preview", template_path)
        return None

    cmd = ["magick", "-density", "150", f"{template_path}[0]", "-quality", "90", str(out)]
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        subprocess.run(cmd, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error("Could not generate preview for %s: %s", template_path.name, e)
        return None
    logger.info("Preview generated for %s", template_path.name)
    return out if out.exists() else None
