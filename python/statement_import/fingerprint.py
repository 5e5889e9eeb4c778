"""
Movement Fingerprint Module

Short content hashes stored with every movement for exact-duplicate lookups.

The hash is truncated to 16 hex characters (64 bits) to match fingerprints
already stored by earlier imports. Collisions are possible but unlikely at
per-account volumes; the record store treats a repeated fingerprint as the
same financial event.
"""

import hashlib
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

FINGERPRINT_LENGTH = 16
DESCRIPTION_PREFIX_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")
# Transaction reference numbers change between exports of the same movement
_REFERENCE_NUMBER = re.compile(r"\d{6,}")

CENT = Decimal("0.01")


def normalize_date(value: date | datetime | str) -> str:
    """Reduce a date, datetime or ISO string to YYYY-MM-DD."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip().split("T")[0].split(" ")[0]


def normalize_amount(value: Decimal | int | float | str) -> str:
    """Format an amount with exactly two decimals."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return f"{amount.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"


def normalize_description(description: str) -> str:
    """Lower-case, collapse whitespace, drop reference numbers, truncate."""
    text = _WHITESPACE.sub(" ", description.lower()).strip()
    text = _REFERENCE_NUMBER.sub("", text)
    return text[:DESCRIPTION_PREFIX_LENGTH]


def movement_fingerprint(
    txn_date: date | datetime | str,
    amount: Decimal | int | float | str,
    description: str,
    account_id: str,
) -> str:
    """Generate the fingerprint of a movement.

    Args:
        txn_date: Movement date; only the calendar day is used
        amount: Signed amount
        description: Movement description
        account_id: Account the movement belongs to

    Returns:
        16-character lower-case hex string
    """
    data = "|".join([
        normalize_date(txn_date),
        normalize_amount(amount),
        normalize_description(description),
        str(account_id),
    ])
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
