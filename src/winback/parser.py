"""
Winback termination report parser.

Carriers send terminated-policy reports as .xlsx files with a few rows of
report metadata above the real header row. The parser finds the header,
maps whatever column names the carrier used onto our fields, and returns
normalized records plus per-row errors. A bad row never aborts the file.
"""

import io
import logging
import re
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional, Union, BinaryIO

from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel

from calculator.decimal_math import dollars_to_cents

logger = logging.getLogger(__name__)

HEADER_SEARCH_ROWS = 15

COLUMN_MAP = {
    "Insured First Name": "first_name",
    "Insured Last Name": "last_name",
    "Street Address": "street_address",
    "City": "city",
    "State": "state",
    "Zip Code": "zip_code",
    "Insured Email": "email",
    "Insured Phone": "phone",
    "Agent#": "agent_number",
    "Policy Number": "policy_number",
    "Original Year": "original_year",
    "Product Code": "product_code",
    "Product Name": "product_name",
    "Renewal Effective Date": "renewal_effective_date",
    "Anniversary Effective Date": "anniversary_effective_date",
    "Termination Effective Date": "termination_effective_date",
    "Termination Reason": "termination_reason",
    "Termination Type": "termination_type",
    "Premium New($)": "premium_new_cents",
    "Premium Old($)": "premium_old_cents",
    "Account Type": "account_type",
    "Company Code": "company_code",
    # alternate spellings
    "Agent Number": "agent_number",
    "Phone Number": "phone",
    "Email": "email",
    "Line Code": "product_name",
    "First Name": "first_name",
    "Last Name": "last_name",
    "Address": "street_address",
    "Zip": "zip_code",
    "Phone": "phone",
    "Pol Nbr": "policy_number",
    "Premium New": "premium_new_cents",
    "Premium Old": "premium_old_cents",
}

REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "zip_code",
    "policy_number",
    "product_name",
    "termination_effective_date",
)

AUTO_TERM_MONTHS = 6
DEFAULT_TERM_MONTHS = 12


@dataclass
class WinbackRecord:
    first_name: str
    last_name: str
    zip_code: str
    policy_number: str
    product_name: str
    termination_effective_date: date
    policy_term_months: int
    is_cancel_rewrite: bool
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    agent_number: Optional[str] = None
    original_year: Optional[int] = None
    product_code: Optional[str] = None
    renewal_effective_date: Optional[date] = None
    anniversary_effective_date: Optional[date] = None
    termination_reason: Optional[str] = None
    termination_type: Optional[str] = None
    premium_new_cents: Optional[int] = None
    premium_old_cents: Optional[int] = None
    account_type: Optional[str] = None
    company_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParseResult:
    records: List[WinbackRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def policy_term_months(product_name: Optional[str]) -> int:
    """Auto policies renew every 6 months; everything else is annual."""
    if product_name and "auto" in product_name.lower():
        return AUTO_TERM_MONTHS
    return DEFAULT_TERM_MONTHS


def is_cancel_rewrite(reason: Optional[str]) -> bool:
    return bool(reason) and "cancel/rewrite" in reason.lower()


def parse_date(value: Any) -> Optional[date]:
    """
    Accept a datetime, an Excel serial number or an ``MM/DD/YYYY`` string.

    ISO strings are accepted as a fallback. Anything else is None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_excel(value).date()
        except (ValueError, OverflowError, TypeError):
            return None
    text = str(value).strip()
    parts = text.split("/")
    if len(parts) == 3:
        try:
            month, day, year = (int(p) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_currency_to_cents(value: Any) -> Optional[int]:
    """
    Examples:
        >>> parse_currency_to_cents("$1,234.50")
        123450
        >>> parse_currency_to_cents("") is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
        if not value:
            return None
    try:
        return dollars_to_cents(value)
    except (InvalidOperation, ValueError):
        return None


def clean_phone(value: Any) -> Optional[str]:
    if not value:
        return None
    digits = re.sub(r"\D", "", str(value))
    if len(digits) >= 10:
        return digits[-10:]
    return digits or None


def clean_zip(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    match = re.match(r"^\d{5}", text)
    if match:
        return match.group(0)
    return text.split("-")[0] or text


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def find_header_row(rows: List[tuple]) -> int:
    """Index of the header row within the first rows of the sheet, or -1."""
    for index, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
        joined = "|".join("" if cell is None else str(cell) for cell in row)
        if "Insured First Name" in joined or "Policy Number" in joined:
            return index
        if "First Name" in joined and "Last Name" in joined and "Termination" in joined:
            return index
    return -1


def map_columns(header_row: tuple) -> Dict[str, int]:
    columns: Dict[str, int] = {}
    for index, cell in enumerate(header_row):
        if cell is None:
            continue
        field_name = COLUMN_MAP.get(str(cell).strip())
        if field_name:
            columns[field_name] = index
    return columns


def _parse_row(row: tuple, columns: Dict[str, int], row_label: str) -> WinbackRecord:
    def cell(name: str) -> Any:
        index = columns.get(name)
        if index is None or index >= len(row):
            return None
        return row[index]

    first_name = (_text(cell("first_name")) or "").upper()
    last_name = (_text(cell("last_name")) or "").upper()
    zip_code = clean_zip(cell("zip_code"))
    product_name = _text(cell("product_name")) or ""
    termination = parse_date(cell("termination_effective_date"))

    if not (first_name and last_name and zip_code and product_name and termination):
        raise ValueError(f"{row_label}: Missing required data (name, zip, product, or termination date)")

    reason = _text(cell("termination_reason"))
    original_year = _text(cell("original_year"))
    email = _text(cell("email"))

    return WinbackRecord(
        first_name=first_name,
        last_name=last_name,
        zip_code=zip_code,
        policy_number=str(cell("policy_number")).strip(),
        product_name=product_name,
        termination_effective_date=termination,
        policy_term_months=policy_term_months(product_name),
        is_cancel_rewrite=is_cancel_rewrite(reason),
        street_address=_text(cell("street_address")),
        city=_text(cell("city")),
        state=_text(cell("state")),
        email=email.lower() if email else None,
        phone=clean_phone(cell("phone")),
        agent_number=_text(cell("agent_number")),
        original_year=int(float(original_year)) if original_year else None,
        product_code=_text(cell("product_code")),
        renewal_effective_date=parse_date(cell("renewal_effective_date")),
        anniversary_effective_date=parse_date(cell("anniversary_effective_date")),
        termination_reason=reason,
        termination_type=_text(cell("termination_type")),
        premium_new_cents=parse_currency_to_cents(cell("premium_new_cents")),
        premium_old_cents=parse_currency_to_cents(cell("premium_old_cents")),
        account_type=_text(cell("account_type")),
        company_code=_text(cell("company_code")),
    )


def parse_rows(rows: List[tuple]) -> ParseResult:
    """Parse the rows of the first worksheet (as value tuples)."""
    result = ParseResult()

    header_index = find_header_row(rows)
    if header_index < 0:
        result.errors.append(
            'Could not find header row. Expected columns like "Insured First Name", "Policy Number", etc.'
        )
        return result

    columns = map_columns(rows[header_index])
    missing = [f for f in REQUIRED_FIELDS if f not in columns]
    if missing:
        result.errors.append(f"Missing required columns: {', '.join(missing)}")
        return result

    policy_col = columns["policy_number"]
    for index in range(header_index + 1, len(rows)):
        row = rows[index]
        if not row:
            continue
        policy_number = row[policy_col] if policy_col < len(row) else None
        if policy_number is None or str(policy_number).strip() == "":
            result.skipped += 1
            continue
        try:
            result.records.append(_parse_row(row, columns, f"Row {index + 1}"))
        except ValueError as e:
            message = str(e)
            if not message.startswith("Row "):
                message = f"Row {index + 1}: {message}"
            result.errors.append(message)
            result.skipped += 1

    logger.info(
        "Parsed winback report: %d records, %d skipped, %d errors",
        len(result.records), result.skipped, len(result.errors),
    )
    return result


def parse_winback_workbook(source: Union[bytes, BinaryIO, str]) -> ParseResult:
    """
    Parse a termination report workbook.

    Args:
        source: raw .xlsx bytes, a file object or a path

    A file that is not a readable workbook yields a single error instead of
    raising.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        workbook = load_workbook(source, read_only=True, data_only=True)
    except Exception as e:
        logger.warning("Could not open winback workbook: %s", e)
        return ParseResult(errors=[f"Failed to parse Excel file: {e}"])

    try:
        sheet = workbook.worksheets[0]
        rows = list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()
    return parse_rows(rows)


def calculate_winback_date(termination_date: date, term_months: int, contact_days_before: int) -> date:
    """
    Day to reach back out: the competitor's renewal date minus the lead time.

    Month arithmetic rolls over the way calendar widgets do: Aug 31 plus six
    months lands on Mar 3 (Feb 31 does not exist), not on Feb 28.
    """
    months = termination_date.month - 1 + term_months
    year = termination_date.year + months // 12
    month = months % 12 + 1
    renewal = date(year, month, 1) + timedelta(days=termination_date.day - 1)
    return renewal - timedelta(days=contact_days_before)


def household_key(record: WinbackRecord) -> str:
    """Deduplication key: ``first|last|zip5`` in lower case."""
    return f"{record.first_name.lower()}|{record.last_name.lower()}|{record.zip_code[:5]}"
