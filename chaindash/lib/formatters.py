"""
Display formatters for chain data.

This module handles unit conversion of raw integer balances, address
truncation, and CSV output of formatted token balances with
timestamp-based filenames.
"""

import csv
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from .models import FormattedToken


# CSV column order for token balance output
TOKEN_CSV_COLUMNS = [
    "contract_address",
    "name",
    "symbol",
    "token_type",
    "decimals",
    "formatted_balance",
    "raw_balance",
]


def parse_raw_balance(raw_balance: str) -> int:
    """
    Parse a raw integer balance as returned by the node.

    Accepts hex ("0x1bc16d674ec80000") and decimal ("1000") strings.

    Raises:
        ValueError: If the string is not an integer in either encoding
    """
    text = raw_balance.strip()
    if text.lower().startswith(("0x", "-0x")):
        return int(text, 16)
    return int(text, 10)


def format_units(raw_balance: int, decimals: int) -> str:
    """
    Format balance with full precision, trimming trailing zeros.

    Args:
        raw_balance: Raw balance value (in smallest unit)
        decimals: Number of decimal places

    Returns:
        Formatted balance string with trailing zeros trimmed

    Examples:
        format_units(1000000, 6) -> "1"
        format_units(1500000, 6) -> "1.5"
        format_units(1234567890123456789, 18) -> "1.234567890123456789"
    """
    if decimals < 0:
        raise ValueError(f"Invalid decimals: {decimals}")

    if raw_balance == 0:
        return "0"

    if decimals == 0:
        return str(raw_balance)

    # Integer arithmetic keeps full precision for any balance size
    sign = "-" if raw_balance < 0 else ""
    whole, fraction = divmod(abs(raw_balance), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")

    if fraction_str:
        return f"{sign}{whole}.{fraction_str}"
    return f"{sign}{whole}"


def truncate_address(address: str, start_length: int = 6, end_length: int = 4) -> str:
    """
    Shorten an address for display, e.g. "0x1234...abcd".

    Addresses already shorter than the kept prefix and suffix are returned as-is.
    """
    if not address:
        return ""

    if len(address) <= start_length + end_length:
        return address

    start = address[:start_length] if start_length > 0 else ""
    end = address[-end_length:] if end_length > 0 else ""
    return f"{start}...{end}"


def generate_timestamp() -> str:
    """
    Generate a timestamp string for filenames.

    Returns:
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def generate_filename(base_path: str, timestamp: Optional[str] = None) -> str:
    """
    Generate a timestamped filename for a CSV report.

    Examples:
        generate_filename("tokens.csv", "20241214_153022") -> "tokens_20241214_153022.csv"
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    path = Path(base_path)
    suffix = path.suffix or ".csv"
    return str(path.parent / f"{path.stem}_{timestamp}{suffix}")


def token_to_csv_row(token: FormattedToken) -> List[str]:
    """Convert a formatted token to a CSV row (list of strings)."""
    return [
        token.contract_address,
        token.name or "",
        token.symbol or "",
        token.token_type or "",
        "" if token.decimals is None else str(token.decimals),
        token.formatted_balance,
        token.token_balance,
    ]


def write_csv_to_stream(tokens: List[FormattedToken], stream: TextIO) -> None:
    """
    Write formatted tokens to a CSV stream.

    Args:
        tokens: List of FormattedToken objects to write
        stream: File-like object to write to
    """
    writer = csv.writer(stream)
    writer.writerow(TOKEN_CSV_COLUMNS)

    for token in tokens:
        writer.writerow(token_to_csv_row(token))


def write_csv(tokens: List[FormattedToken], output_path: Optional[str] = None) -> Optional[str]:
    """
    Write formatted tokens to a CSV file or stdout.

    Args:
        tokens: Tokens to write
        output_path: Base output path. If None, writes to stdout.

    Returns:
        The written file path if output_path was provided, otherwise None.
    """
    if output_path is None:
        write_csv_to_stream(tokens, sys.stdout)
        return None

    filename = generate_filename(output_path)
    with open(filename, "w", newline="", encoding="utf-8") as f:
        write_csv_to_stream(tokens, f)
    return filename
