"""
Error types raised by the voucher pipeline.

The UI and CLI catch these explicitly; anything else is treated as unexpected.
"""


class VoucherError(Exception):
    """Base class for all pipeline errors."""


class InputError(VoucherError, ValueError):
    """Bad request: missing upload, unknown template, no usable rows."""


class ParseError(VoucherError, RuntimeError):
    """The uploaded CSV could not be read."""


class AssetError(VoucherError, FileNotFoundError):
    """A QR code image is missing at render time (recovered per item)."""


class GenerationError(VoucherError, RuntimeError):
    """Generation finished but produced nothing usable."""


class FontRegistrationError(VoucherError, RuntimeError):
    """Required font files are missing or unreadable."""
