"""Export Module.

CSV and text downloads:
- Cancel Audit record export
- Vendor ROI report
"""

from export.csv_export import (
    CSV_CONTENT_TYPE,
    CsvExport,
    build_csv,
    escape_csv_field,
)
from export.cancel_audit_export import (
    CANCEL_AUDIT_HEADERS,
    export_cancel_audit_csv,
    filter_records,
)
from export.vendor_report import (
    vendor_report_csv,
    vendor_report_text,
)

__all__ = [
    "CSV_CONTENT_TYPE",
    "CsvExport",
    "build_csv",
    "escape_csv_field",
    "CANCEL_AUDIT_HEADERS",
    "export_cancel_audit_csv",
    "filter_records",
    "vendor_report_csv",
    "vendor_report_text",
]
