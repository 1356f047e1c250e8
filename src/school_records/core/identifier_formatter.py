"""
IDENTIFIER FORMATTER - Render and parse admission / staff numbers

Pure functions, no storage access. parse_identifier() is the exact inverse of
format_identifier() for the same format type, separator, token and pad width:

    parse_identifier(format_identifier(v, spec, year), spec.format_type, spec.separator)
        == ParsedIdentifier(sequence=v, year=year, prefix=spec.scope_prefix)

EDGE CASES HANDLED:
- Regex metacharacters as separators ('.', '/', '+') are escaped
- Sequences wider than the pad width are rendered in full and still parse
- Staff numbers have no year segment (STF-0001)
"""

import logging
import re
from functools import lru_cache
from typing import List, Optional, Pattern

from school_records.core.models.identifiers import (
    ADMISSION_TOKEN,
    PREFIX_PATTERN,
    FormatType,
    IdentifierFormatSpec,
    ParsedIdentifier,
)
from school_records.exceptions import MalformedIdentifier

logger = logging.getLogger(__name__)

YEAR_PATTERN = r"\d{4}"


def _segments(format_type: FormatType, token: str, prefix, year, sequence) -> List:
    """Order the segments for a format type; year is dropped when None"""
    middle = [year] if year is not None else []

    if format_type is FormatType.NO_SCOPE_PREFIX:
        return [token, *middle, sequence]
    if format_type is FormatType.PREFIX_START:
        return [prefix, token, *middle, sequence]
    if format_type is FormatType.PREFIX_MIDDLE:
        return [token, prefix, *middle, sequence]
    if format_type is FormatType.PREFIX_END:
        return [token, *middle, sequence, prefix]
    raise AssertionError(f"Unhandled format type: {format_type}")


def format_identifier(
    sequence_value: int,
    spec: IdentifierFormatSpec,
    year: Optional[int] = None,
    token: str = ADMISSION_TOKEN,
) -> str:
    """
    Render a sequence value as a human-readable identifier

    Args:
        sequence_value: Issued counter value (>= 0)
        spec: Tenant format rules
        year: Academic year (four digits); None for staff numbers
        token: Fixed literal, ADM or STF

    Returns:
        Formatted identifier, e.g. KB-ADM-2025-001
    """
    if sequence_value < 0:
        raise ValueError(f"Sequence value must be non-negative, got: {sequence_value}")
    if year is not None and not 1000 <= year <= 9999:
        raise ValueError(f"Year must have four digits, got: {year}")

    padded = str(sequence_value).zfill(spec.zero_pad_width)
    year_part = str(year) if year is not None else None
    parts = _segments(spec.format_type, token, spec.scope_prefix, year_part, padded)
    return spec.separator.join(parts)


@lru_cache(maxsize=256)
def build_pattern(
    format_type: FormatType,
    separator: str,
    token: str = ADMISSION_TOKEN,
    zero_pad_width: int = 3,
    has_year: bool = True,
) -> Pattern:
    """Compile the matching regex with named groups seq, year and prefix"""
    sequence = rf"(?P<seq>\d{{{zero_pad_width},}})"
    year = rf"(?P<year>{YEAR_PATTERN})" if has_year else None
    prefix = rf"(?P<prefix>{PREFIX_PATTERN})"

    parts = _segments(format_type, re.escape(token), prefix, year, sequence)
    return re.compile("^" + re.escape(separator).join(parts) + "$")


def parse_identifier(
    identifier: str,
    format_type: FormatType,
    separator: str = "-",
    token: str = ADMISSION_TOKEN,
    zero_pad_width: int = 3,
    has_year: bool = True,
) -> ParsedIdentifier:
    """
    Recover sequence, year and prefix from an identifier

    Raises:
        MalformedIdentifier: field counts, digit widths or fixed tokens are wrong
    """
    format_type = FormatType(format_type)
    if not isinstance(identifier, str) or len(separator) != 1:
        raise MalformedIdentifier(f"Cannot parse {identifier!r} with separator {separator!r}")

    pattern = build_pattern(format_type, separator, token, zero_pad_width, has_year)
    match = pattern.match(identifier)
    if not match:
        raise MalformedIdentifier(
            f"{identifier!r} does not match {format_type.value} format "
            f"(token {token}, separator {separator!r})"
        )

    groups = match.groupdict()
    return ParsedIdentifier(
        sequence=int(groups["seq"]),
        year=int(groups["year"]) if groups.get("year") else None,
        prefix=groups.get("prefix"),
    )


def validate_identifier(
    identifier: str,
    format_type: FormatType,
    separator: str = "-",
    expected_year: Optional[int] = None,
    token: str = ADMISSION_TOKEN,
    zero_pad_width: int = 3,
) -> bool:
    """Check an identifier against a tenant's format (and optionally its year)"""
    try:
        parsed = parse_identifier(identifier, format_type, separator, token, zero_pad_width)
    except MalformedIdentifier as exc:
        logger.warning(f"✗ Invalid identifier format: {exc}")
        return False

    if expected_year is not None and parsed.year != expected_year:
        logger.warning(
            f"✗ Identifier year {parsed.year} does not match expected year {expected_year}"
        )
        return False
    return True


__all__ = [
    "format_identifier",
    "parse_identifier",
    "validate_identifier",
    "build_pattern",
]
