#!/usr/bin/env python3
"""Print the detected separator, normalized columns and a few rows of a voucher CSV."""

import sys
from pathlib import Path

from data_loaders import detect_delimiter, load_records, load_vouchers
from errors import VoucherError


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python inspect_csv.py <file.csv>")
        return 1
    p = Path(args[0])
    if not p.exists():
        print(f"Not found: {p}")
        return 1

    try:
        sep = detect_delimiter(p)
        records = load_records(p)
    except VoucherError as e:
        print(f"Error: {e}")
        return 1

    print(f"Separator: {sep!r}")
    print("Columns:")
    for i, c in enumerate(records[0].keys() if records else []):
        print(f"  {i} {c!r}")
    print(f"\nRows: {len(records)}, usable vouchers: {len(load_vouchers(records))}")
    print("First 2 rows:")
    for row in records[:2]:
        print(f"  {row}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
