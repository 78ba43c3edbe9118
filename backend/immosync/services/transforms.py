import datetime as dt
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from dateutil import parser as dtparser

from immosync.schemas.interface import FormatType, MappingRule, TextTransform

logger = logging.getLogger(__name__)

SPECIAL_CHARS = {
    "‘": "'",
    "’": "'",
    "‚": "'",
    "“": '"',
    "”": '"',
    "„": '"',
    "–": "-",
    "—": "-",
    "…": "...",
}

FormattedValue = Union[str, int, None]


def is_valid_condition(condition: str, value: Optional[str]) -> bool:
    return value in condition.split("|")


def standardize_special_chars(content: str) -> str:
    for char, replacement in SPECIAL_CHARS.items():
        content = content.replace(char, replacement)
    return content


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def format_number(value: str, decimals: int) -> Union[str, int]:
    number = _to_float(value)
    if decimals <= 0:
        return int(number)
    quantum = Decimal(1).scaleb(-decimals)
    try:
        return str(Decimal(str(number)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return f"{number:.{decimals}f}"


def format_date(value: str) -> Optional[int]:
    try:
        parsed = dtparser.parse(value)
    except (ValueError, OverflowError):
        logger.debug("Unable to parse date %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return int(parsed.timestamp())


def format_text(value: str, transform: Optional[TextTransform], trim: bool) -> str:
    if transform is TextTransform.LOWERCASE:
        value = value.lower()
    elif transform is TextTransform.UPPERCASE:
        value = value.upper()
    elif transform is TextTransform.CAPITALIZE:
        value = value[:1].upper() + value[1:]
    elif transform is TextTransform.REMOVE_SPECIAL_CHAR:
        value = standardize_special_chars(value)
    if trim:
        value = value.strip()
    return value


def format_boolean(value: str, compare_value: Optional[str]) -> str:
    if compare_value:
        return "1" if value == compare_value else "0"
    return "1" if value in ("1", "true") else "0"


def format_value(value: str, rule: MappingRule) -> FormattedValue:
    if rule.format_type is FormatType.NUMBER:
        return format_number(value, rule.decimals)
    if rule.format_type is FormatType.DATE:
        return format_date(value)
    if rule.format_type is FormatType.TEXT:
        return format_text(value, rule.text_transform, rule.trim)
    if rule.format_type is FormatType.BOOLEAN:
        return format_boolean(value, rule.boolean_compare_value)
    return value
