"""Ingestion of uploaded flow files.

This module turns a user supplied CSV or Excel file into the normalised
table of flow records that the rest of the application works with.  Both
parsing strategies converge on the same :class:`Record` shape and the
functions are side effect free so that they can be unit tested without
Streamlit.
"""

from __future__ import annotations

import io
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple, Union

import chardet
import pandas as pd

from decoders.base import SpreadsheetDecoder

from .errors import (
    REQUIRED_COLUMNS_TEXT,
    EmptySource,
    IngestError,
    LibraryUnavailable,
    MissingColumns,
    NoValidRows,
    ParseFailure,
    UnsupportedFileType,
)

logger = logging.getLogger(__name__)

FileKind = Literal["csv", "excel"]

REQUIRED_FIELDS: Tuple[str, ...] = ("utility", "source", "target", "value")

CSV_SUFFIXES = (".csv",)
EXCEL_SUFFIXES = (".xlsx", ".xls")

_VALUE_NOISE = re.compile(r"[$,\s]")


@dataclass(frozen=True)
class Record:
    """One flow row of the uploaded file.

    Attributes
    ----------
    utility : str
        Grouping key the user selects in the dropdown.
    source : str
        Label of the node the flow leaves.
    target : str
        Label of the node the flow enters.
    value : str
        Cleaned amount; may be empty, in which case ``"0"`` is used when
        the flow is rendered.
    """

    utility: str
    source: str
    target: str
    value: str = ""


@dataclass(frozen=True)
class IngestResult:
    """A successfully parsed upload."""

    table: Tuple[Record, ...]
    utilities: Tuple[str, ...]


def detect_file_kind(file_name: str) -> FileKind:
    """Classify an upload by its filename suffix, ignoring case."""

    lower_name = (file_name or "").lower()
    if lower_name.endswith(CSV_SUFFIXES):
        return "csv"
    if lower_name.endswith(EXCEL_SUFFIXES):
        return "excel"
    raise UnsupportedFileType()


def decode_text(raw: Union[bytes, str]) -> str:
    """Return the text content of a delimited upload.

    UTF-8 (with or without BOM) is tried first; other encodings are
    detected from the whole buffer with chardet.
    """

    if isinstance(raw, str):
        return raw
    if not raw:
        return ""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    encoding = chardet.detect(raw)["encoding"] or "utf-8"
    logger.info("Decoding upload as %s", encoding)
    return raw.decode(encoding)


def clean_value(value: Optional[str]) -> str:
    """Strip currency symbols, thousands separators and whitespace."""

    if not value:
        return ""
    return _VALUE_NOISE.sub("", value)


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line on commas, honouring double quotes.

    A ``"`` toggles the quoted mode and is dropped from the output.  There
    is no escape sequence: ``""`` closes and immediately reopens a quote.
    """

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def resolve_columns(headers: Sequence[str]) -> Dict[str, int]:
    """Locate the required columns by case-insensitive name.

    Returns
    -------
    dict
        Mapping of ``utility``/``source``/``target``/``value`` to the index
        of the first matching header.

    Raises
    ------
    MissingColumns
        If any of the four columns is absent.
    """

    lowered = [str(header).strip().lower() for header in headers]
    resolved: Dict[str, int] = {}
    for field in REQUIRED_FIELDS:
        if field not in lowered:
            raise MissingColumns()
        resolved[field] = lowered.index(field)
    return resolved


def find_value(row: Mapping[Any, Any], key: str) -> Any:
    """Return ``row[key]`` matching the key case-insensitively."""

    wanted = key.lower()
    for candidate in row:
        if str(candidate).lower() == wanted:
            return row[candidate]
    return None


def _cell_text(value: Any) -> str:
    """Render a spreadsheet cell the way it is displayed."""

    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return str(value)


def _field(fields: Sequence[str], index: int) -> str:
    return fields[index] if index < len(fields) else ""


def _make_record(utility: str, source: str, target: str, value: str) -> Optional[Record]:
    utility, source, target = utility.strip(), source.strip(), target.strip()
    if not (utility and source and target):
        return None
    return Record(utility=utility, source=source, target=target, value=clean_value(value.strip()))


def build_result(records: Iterable[Record]) -> IngestResult:
    """Freeze accepted records and derive the sorted utility list."""

    table = tuple(records)
    utilities = tuple(sorted({record.utility for record in table}))
    return IngestResult(table=table, utilities=utilities)


def parse_csv_text(text: str) -> IngestResult:
    """Parse delimited text into an :class:`IngestResult`.

    The first non-empty line holds the headers and is split on plain
    commas.  Every later non-empty line is tokenised with
    :func:`parse_csv_line`; rows lacking a utility, source or target are
    skipped without raising.
    """

    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        raise EmptySource()

    headers = [header.strip() for header in lines[0].split(",")]
    columns = resolve_columns(headers)

    records: List[Record] = []
    for line in lines[1:]:
        fields = parse_csv_line(line)
        record = _make_record(*(_field(fields, columns[name]) for name in REQUIRED_FIELDS))
        if record is not None:
            records.append(record)

    dropped = len(lines) - 1 - len(records)
    logger.info("CSV rows accepted=%d dropped=%d", len(records), dropped)
    if not records:
        raise NoValidRows()
    return build_result(records)


def parse_spreadsheet_rows(rows: Sequence[Mapping[Any, Any]]) -> IngestResult:
    """Parse associative spreadsheet rows into an :class:`IngestResult`.

    Column presence is not checked up front: a row missing one of the
    required keys is dropped like any other incomplete row.
    """

    if not rows:
        raise EmptySource("No data found in Excel file.")

    records: List[Record] = []
    for row in rows:
        record = _make_record(
            _cell_text(find_value(row, "utility")),
            _cell_text(find_value(row, "source")),
            _cell_text(find_value(row, "target")),
            _cell_text(find_value(row, "value")),
        )
        if record is not None:
            records.append(record)

    logger.info("Spreadsheet rows accepted=%d dropped=%d", len(records), len(rows) - len(records))
    if not records:
        raise NoValidRows(f"No valid data found. Ensure columns: {REQUIRED_COLUMNS_TEXT} exist.")
    return build_result(records)


FileLike = Union[io.BytesIO, io.BufferedReader]


def _read_bytes(content: Union[bytes, str, FileLike]) -> Union[bytes, str]:
    if isinstance(content, (bytes, str)):
        return content
    if hasattr(content, "getvalue"):
        return content.getvalue()
    return content.read()


class Ingestor:
    """Detects the upload kind and runs the matching parser.

    Parameters
    ----------
    decoder:
        Spreadsheet capability used for ``.xlsx``/``.xls`` uploads.  When
        ``None`` only CSV uploads can be ingested.
    """

    def __init__(self, decoder: Optional[SpreadsheetDecoder] = None):
        self.decoder = decoder

    def ingest(self, file_name: str, content: Union[bytes, str, FileLike]) -> IngestResult:
        """Parse one upload; either the whole table or an :class:`IngestError`."""

        kind = detect_file_kind(file_name)
        logger.info("Ingesting %s as %s", file_name, kind)
        try:
            raw = _read_bytes(content)
            if kind == "csv":
                return parse_csv_text(decode_text(raw))
            if self.decoder is None:
                raise LibraryUnavailable()
            if isinstance(raw, str):
                raise TypeError("spreadsheet content must be bytes")
            return parse_spreadsheet_rows(self.decoder.decode(raw, file_name))
        except IngestError as exc:
            logger.warning("Rejected %s: %s", file_name, exc.message)
            raise
        except Exception as exc:
            logger.exception("Unexpected failure parsing %s", file_name)
            raise ParseFailure.from_exception(exc) from exc


def records_to_frame(table: Iterable[Record]) -> pd.DataFrame:
    """Return the table as a dataframe for previews."""

    return pd.DataFrame(
        [(r.utility, r.source, r.target, r.value) for r in table],
        columns=["Utility", "Source", "Target", "Value"],
    )
