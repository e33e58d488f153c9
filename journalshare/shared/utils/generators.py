"""ID and value generators (document IDs, invoice numbers)."""

from cuid2 import cuid_wrapper

from journalshare.shared.utils.datetime import utc_now

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant document identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_invoice_number(prefix: str = "INV") -> str:
    """Return '<prefix>-<year>-<last 6 digits of epoch millis>' (not sequential)."""
    now = utc_now()
    unique_part = str(int(now.timestamp() * 1000))[-6:]
    return f"{prefix}-{now.year}-{unique_part}"
