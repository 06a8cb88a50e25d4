from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from domain.models import MAX_AMOUNT


def parse_birth_date(text: str) -> Optional[date]:
    """
    Parse an optional birth date.

    Format: YYYY-MM-DD. An empty answer means "not given".
    """

    text = text.strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"Invalid birth date: {text} (expected yyyy-mm-dd)") from exc


def parse_amount(text: str) -> Decimal:
    text = text.strip()
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Amount must be a number: {text!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Amount must be a number: {text!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount is too large: {text} (at most {MAX_AMOUNT})")
    return amount


def parse_age_limit(text: str) -> int:
    text = text.strip()
    if not text:
        return 0
    try:
        limit = int(text)
    except ValueError as exc:
        raise ValueError(f"Age limit must be a whole number: {text!r}") from exc
    if limit < 0:
        raise ValueError("Age limit cannot be negative.")
    return limit
