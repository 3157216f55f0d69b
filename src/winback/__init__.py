"""Winback: terminated-policy report ingestion."""

from winback.parser import (
    ParseResult,
    WinbackRecord,
    calculate_winback_date,
    household_key,
    parse_rows,
    parse_winback_workbook,
)

__all__ = [
    "ParseResult",
    "WinbackRecord",
    "calculate_winback_date",
    "household_key",
    "parse_rows",
    "parse_winback_workbook",
]
