"""Formatting helpers for DGII documents and links"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")

DMY = re.compile(r"^(\d{2})-(\d{2})-(\d{4})(.*)$")
YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ](.*))?$")

DateLike = Union[str, date, datetime, None]


def format_dgii_date(value: DateLike, keep_time: bool = False) -> str:
    """
    DD-MM-YYYY for DGII links

    With keep_time, a time suffix already present is kept (as " HH:MM:SS").
    Unrecognized strings are passed through unchanged.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d-%m-%Y %H:%M:%S" if keep_time else "%d-%m-%Y")
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")

    text = str(value).strip()
    match = DMY.match(text)
    if match:
        day, month, year, rest = match.groups()
        suffix = rest.strip() if keep_time else ""
        return f"{day}-{month}-{year}" + (f" {suffix}" if suffix else "")

    match = YMD.match(text)
    if match:
        year, month, day, rest = match.groups()
        suffix = ""
        if keep_time and rest:
            suffix = re.split(r"[.+Z]", rest)[0]
        return f"{day}-{month}-{year}" + (f" {suffix}" if suffix else "")

    return text


def format_amount(value: Union[Decimal, float, int, str, None]) -> str:
    if value is None or value == "":
        amount = Decimal("0")
    else:
        amount = Decimal(str(value).replace(",", ""))
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def parse_amount(value: Union[Decimal, float, int, str, None]) -> Optional[Decimal]:
    """
    Decimal from a number or a string with thousands separators

    Returns None for anything that is not a number. Empty input is zero.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0") if value is None else None
    text = str(value).replace(",", "").strip()
    if text == "":
        return Decimal("0")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
