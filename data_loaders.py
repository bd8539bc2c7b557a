"""
Lightweight CSV loading helpers.

Important: Keep imports light at module import time (Streamlit Cloud startup).
We import pandas only inside functions.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Union

from errors import InputError, ParseError

logger = logging.getLogger(__name__)

Record = Dict[str, str]
PathLike = Union[str, Path]


class Voucher(NamedTuple):
    code: str
    expiration_date: str


def detect_delimiter(path: PathLike) -> str:
    """
    Guess the field separator from the first line of the file.
    ';' wins only when it is strictly more frequent than ',' (ties -> ',').
    Not quote-aware: good enough for spreadsheet exports.
    """
    try:
        with open(path, "rb") as f:
            first_line = f.readline().decode("utf-8", errors="replace")
    except OSError as e:
        raise ParseError(f"Could not read CSV file: {e}") from e
    return ";" if first_line.count(";") > first_line.count(",") else ","


def normalize_header(name: str) -> str:
    """' "Code ID" ' -> 'code_id'."""
    h = str(name).strip()
    h = re.sub(r"^[\"']|[\"']$", "", h)
    return re.sub(r"\s+", "_", h.lower())


def load_records(path: PathLike) -> List[Record]:
    """
    Read a CSV into a list of {normalized header: value} dicts.
    Every value is a string; blank cells are "".
    Bytes that are not valid UTF-8 (e.g. Windows-1252 exports) become U+FFFD.
    """
    import pandas as pd

    sep = detect_delimiter(path)
    logger.info("CSV %s: detected separator %r", Path(path).name, sep)
    try:
        df = pd.read_csv(
            path,
            sep=sep,
            dtype=str,
            keep_default_na=False,
            index_col=False,
            encoding="utf-8-sig",
            encoding_errors="replace",
        )
    except pd.errors.EmptyDataError as e:
        raise InputError("The CSV file is empty.") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise ParseError(f"Could not parse CSV: {e}") from e

    df.columns = [normalize_header(c) for c in df.columns]
    df = df.fillna("")
    return df.to_dict(orient="records")


def voucher_from_record(row: Record) -> Optional[Voucher]:
    """Voucher from a row, or None when 'code' or 'expiration_date' is blank."""
    code = str(row.get("code") or "").strip()
    expiration_date = str(row.get("expiration_date") or "").strip()
    if not code or not expiration_date:
        return None
    return Voucher(code, expiration_date)


def load_vouchers(records: List[Record]) -> List[Voucher]:
    """Keep rows with both 'code' and 'expiration_date' (trimmed)."""
    vouchers = []
    skipped = 0
    for row in records:
        voucher = voucher_from_record(row)
        if voucher is None:
            skipped += 1
            logger.warning("Skipping CSV row without 'code' or 'expiration_date': %s", row)
            continue
        vouchers.append(voucher)
    if skipped:
        logger.info("Loaded %d voucher(s), skipped %d row(s)", len(vouchers), skipped)
    return vouchers
