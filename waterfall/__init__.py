"""Flow file ingestion and SankeyMATIC formatting."""

from .data_loader import (
    IngestResult,
    Ingestor,
    Record,
    clean_value,
    detect_file_kind,
    parse_csv_line,
    parse_csv_text,
    parse_spreadsheet_rows,
)
from .errors import IngestError
from .flow_format import NO_ROWS_MESSAGE, format_flows
from .session import SessionContext

__all__ = [
    "IngestResult",
    "Ingestor",
    "Record",
    "clean_value",
    "detect_file_kind",
    "parse_csv_line",
    "parse_csv_text",
    "parse_spreadsheet_rows",
    "IngestError",
    "NO_ROWS_MESSAGE",
    "format_flows",
    "SessionContext",
]
