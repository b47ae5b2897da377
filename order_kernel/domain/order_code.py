"""
Order code formatting -- pure functions.

An order code is a date token followed by a zero-padded daily sequence:

    2024-12-11, 2nd order of the day  ->  "24DEC11" + "00002"  ->  "24DEC1100002"

The token is ``yyMMMdd`` with an English upper-case month abbreviation taken
from a fixed table, so the result never depends on the process locale.
Sorting codes of one token lexicographically sorts them by sequence.
"""

from datetime import date

from order_kernel.exceptions import OrderCodeCorruptError

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

TOKEN_LENGTH = 7
SEQUENCE_WIDTH = 5
ORDER_CODE_LENGTH = TOKEN_LENGTH + SEQUENCE_WIDTH
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1


def date_token(day: date) -> str:
    """``date(2024, 12, 11)`` -> ``"24DEC11"``."""
    return f"{day.year % 100:02d}{MONTH_ABBREVIATIONS[day.month - 1]}{day.day:02d}"


def format_order_code(token: str, sequence: int) -> str:
    """Join a date token and a daily sequence number into an order code.

    Raises:
        OrderCodeCorruptError: sequence is outside 1..MAX_SEQUENCE.
    """
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise OrderCodeCorruptError(
            f"{token}{sequence}",
            f"daily sequence {sequence} outside 1..{MAX_SEQUENCE}",
        )
    return f"{token}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(order_code: str, token: str) -> int:
    """Extract the trailing daily sequence from a persisted order code.

    Raises:
        OrderCodeCorruptError: the code does not have the expected length,
            prefix, or five trailing digits.
    """
    if len(order_code) != ORDER_CODE_LENGTH:
        raise OrderCodeCorruptError(
            order_code, f"expected {ORDER_CODE_LENGTH} characters"
        )
    if not order_code.startswith(token):
        raise OrderCodeCorruptError(order_code, f"expected prefix {token}")
    digits = order_code[TOKEN_LENGTH:]
    if not (digits.isascii() and digits.isdigit()):
        raise OrderCodeCorruptError(order_code, "sequence part is not numeric")
    return int(digits)
