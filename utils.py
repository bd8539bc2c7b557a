import re
from datetime import date
from pathlib import Path
from typing import Optional

_ILLEGAL = re.compile(r'[/?<>\\:*|"]')
_CONTROL = re.compile(r"[\x00-\x1f\x80-\x9f]")
_RESERVED = re.compile(r"^\.+$")
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING = re.compile(r"[. ]+$")


def sanitize_filename(name: str, max_bytes: int = 255) -> str:
    """
    Make a string safe to use as a single path component.
    - Drops path separators, reserved characters and control characters
    - Drops names made only of dots and Windows device names
    - Strips trailing dots/spaces and truncates to max_bytes (UTF-8)
    May return an empty string.
    """
    raw = "" if name is None else str(name)
    safe = _ILLEGAL.sub("", raw)
    safe = _CONTROL.sub("", safe)
    safe = _RESERVED.sub("", safe)
    safe = _WINDOWS_RESERVED.sub("", safe)
    safe = _WINDOWS_TRAILING.sub("", safe)
    encoded = safe.encode("utf-8")
    if len(encoded) > max_bytes:
        safe = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return safe


def csv_base_name(original_filename: str) -> str:
    """'exports/vouchers.csv' -> 'vouchers'."""
    return Path(str(original_filename or "")).stem or "vouchers"


def create_folder_name(original_filename: str, today: Optional[date] = None) -> str:
    """Request folder for QR assets: '<csvBase>_<YYYY-MM-DD>'."""
    today = today or date.today()
    return sanitize_filename(f"{csv_base_name(original_filename)}_{today.isoformat()}")


def output_pdf_name(original_filename: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{csv_base_name(original_filename)}_{today.isoformat()}.pdf"


def qr_asset_name(code: str, expiration_date: str) -> str:
    return sanitize_filename(f"qrcode_{code}_{expiration_date}.png")


def invite_pdf_name(code: str, today: Optional[date] = None) -> str:
    """'<code>_<day>-<month>.pdf' without zero padding."""
    today = today or date.today()
    return f"{sanitize_filename(code)}_{today.day}-{today.month}.pdf"


def invite_zip_name(original_filename: str) -> str:
    return f"Convites_{csv_base_name(original_filename)}.zip"


def format_file_size(num_bytes: int) -> str:
    """KB below 1 MB, otherwise MB with two decimals."""
    size_kb = round(num_bytes / 1024)
    if size_kb > 1024:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
    return f"{size_kb} KB"
