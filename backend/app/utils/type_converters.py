"""
Type converters — shared value conversion utilities.

Money values travel as Decimal internally and as decimal strings on the
wire; PostgREST returns numeric columns as JSON numbers, so anything read
back from Supabase goes through to_decimal before use.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert value to Decimal via its string form, returning None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def format_money(value: Any) -> Optional[str]:
    """Serialize a money value as a plain decimal string ("19.99", never 1.999E+1)."""
    dec = to_decimal(value)
    if dec is None:
        return None
    return format(dec, "f")

