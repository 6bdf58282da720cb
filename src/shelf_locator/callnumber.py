"""
Call number parsing and classification ordering.

Call numbers are compared the way shelves are ordered, not numerically:
letters first, then the integer class, then the digits after the decimal
point compared as a string ("296.81" < "296.851" < "296.9").
Pure Python implementation - no external dependencies.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# =============================================================================
# Parsing
# =============================================================================

# Optional letters, required integer, optional ".digits"; anything after is ignored
CALL_NUMBER_PATTERN = re.compile(r"^\s*([^\W\d_]*)\s*(\d+)(?:\.(\d+))?")

# Whitespace followed by a Latin or Hebrew letter starts the cutter
CUTTER_PATTERN = re.compile(r"\s+[A-Za-zא-ת].*$", re.DOTALL)


@dataclass(frozen=True)
class ParsedCallNumber:
    """Components of a call number used for ordering."""

    prefix: str  # e.g. "QA", may be empty
    main_class: int  # e.g. 76
    decimal: str  # digits after the point, kept as a string ("73", "0851")

    def sort_key(self) -> tuple[str, int, str]:
        """Key implementing classification ordering."""
        return (self.prefix.casefold(), self.main_class, self.decimal)


def parse_call_number(call_number: str | None) -> ParsedCallNumber | None:
    """
    Parse a call number into prefix, main class and decimal.

    Returns None when the string has no leading digit run (after optional
    letters). That is reported as "unparsable", never raised.

    Examples:
        "QA76.73" -> ParsedCallNumber("QA", 76, "73")
        "296.851" -> ParsedCallNumber("", 296, "851")
        "BF109"   -> ParsedCallNumber("BF", 109, "")
    """
    if not call_number:
        return None

    match = CALL_NUMBER_PATTERN.match(call_number)
    if not match:
        return None

    prefix, main_class, decimal = match.groups()
    return ParsedCallNumber(
        prefix=prefix,
        main_class=int(main_class),
        decimal=decimal or "",
    )


def call_number_sort_key(call_number: str | None) -> tuple:
    """
    Sort key for call numbers under classification ordering.

    Unparsable values sort before every parsable value.
    """
    parsed = parse_call_number(call_number)
    if parsed is None:
        return (0,)
    return (1, *parsed.sort_key())


def compare_call_numbers(a: str | None, b: str | None) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, with, or after ``b``."""
    key_a = call_number_sort_key(a)
    key_b = call_number_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


# =============================================================================
# Range matching
# =============================================================================


def remove_cutter(call_number: str | None) -> str:
    """
    Strip the cutter suffix from a call number.

    Examples:
        "892.413 מאו" -> "892.413"
        "301.5 ABC"   -> "301.5"
        "QA76.73"     -> "QA76.73"
    """
    if not call_number:
        return ""
    return CUTTER_PATTERN.sub("", call_number, count=1).strip()


def in_range(call_number: str, range_start: str, range_end: str) -> bool:
    """
    Check whether a raw call number falls within [range_start, range_end].

    The cutter is removed first. If any operand cannot be parsed the
    call number does not match. Inverted ranges never match.
    """
    stripped = remove_cutter(call_number)

    parsed = parse_call_number(stripped)
    start = parse_call_number(range_start)
    end = parse_call_number(range_end)
    if parsed is None or start is None or end is None:
        logger.debug(
            f"Unparsable call number in range check: "
            f"{call_number!r} in [{range_start!r}, {range_end!r}]"
        )
        return False

    key = parsed.sort_key()
    return start.sort_key() <= key <= end.sort_key()
