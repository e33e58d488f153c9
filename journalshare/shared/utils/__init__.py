"""Shared utilities (time, identifiers)."""

from journalshare.shared.utils.datetime import coerce_utc, ensure_utc, utc_now
from journalshare.shared.utils.generators import generate_cuid, generate_invoice_number

__all__ = [
    "coerce_utc",
    "ensure_utc",
    "generate_cuid",
    "generate_invoice_number",
    "utc_now",
]
