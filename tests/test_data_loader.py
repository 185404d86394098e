import io

import pandas as pd
import pytest

from decoders.base import SpreadsheetDecoder
from decoders.pandas_excel import PandasExcelDecoder
from waterfall.data_loader import (
    Ingestor,
    Record,
    clean_value,
    decode_text,
    detect_file_kind,
    parse_csv_line,
    parse_csv_text,
    parse_spreadsheet_rows,
    records_to_frame,
    resolve_columns,
)
from waterfall.errors import (
    EmptySource,
    LibraryUnavailable,
    MissingColumns,
    NoValidRows,
    ParseFailure,
    UnsupportedFileType,
)


class StaticDecoder(SpreadsheetDecoder):
    def __init__(self, rows):
        self.rows = rows

    def decode(self, content, file_name=""):
        return self.rows


class BrokenDecoder(SpreadsheetDecoder):
    def decode(self, content, file_name=""):
        raise RuntimeError("corrupt workbook")


def test_detect_file_kind_ignores_case():
    assert detect_file_kind("farm.CSV") == "csv"
    assert detect_file_kind("farm.xlsx") == "excel"
    assert detect_file_kind("Farm.XLS") == "excel"


def test_detect_file_kind_rejects_other_suffixes():
    with pytest.raises(UnsupportedFileType) as excinfo:
        detect_file_kind("farm.txt")
    assert excinfo.value.message == "Please upload a CSV or Excel file."


def test_parse_csv_line_keeps_commas_inside_quotes():
    assert parse_csv_line('a,"b,c",d') == ["a", "b,c", "d"]


def test_parse_csv_line_double_quote_is_not_an_escape():
    assert parse_csv_line('a,"x""y",b') == ["a", "xy", "b"]
    assert parse_csv_line("a,,b,") == ["a", "", "b", ""]


def test_clean_value_strips_noise_and_is_idempotent():
    assert clean_value(" $1,234 ") == "1234"
    assert clean_value("1234") == "1234"
    assert clean_value(clean_value("$ 12,000.50")) == "12000.50"
    assert clean_value("") == ""


def test_resolve_columns_is_order_independent():
    columns = resolve_columns(["Value", "Target", "UTILITY", "source"])
    assert columns == {"utility": 2, "source": 3, "target": 1, "value": 0}


def test_parse_csv_text_with_reordered_headers():
    text = 'Value,Target,Utility,Source\n"$1,000",T1,U1,S1\n'
    result = parse_csv_text(text)
    assert result.table == (Record("U1", "S1", "T1", "1000"),)
    assert result.utilities == ("U1",)


def test_parse_csv_text_drops_incomplete_rows_in_order():
    text = "\n".join([
        "Utility,Source,Target,Value",
        "B,S1,T1,10",
        " ,S2,T2,20",
        "A,S3,,30",
        "",
        "A,S4,T4,",
        "A,S5",
        "A , S6 , T6 , $ 60 ",
    ])
    result = parse_csv_text(text)
    assert result.table == (
        Record("B", "S1", "T1", "10"),
        Record("A", "S4", "T4", ""),
        Record("A", "S6", "T6", "60"),
    )
    assert result.utilities == ("A", "B")


def test_parse_csv_text_handles_windows_line_endings():
    text = "Utility,Source,Target,Value\r\nU1,S1,T1,5\r\n"
    assert parse_csv_text(text).table == (Record("U1", "S1", "T1", "5"),)


def test_utilities_are_sorted_and_unique():
    text = "Utility,Source,Target,Value\nB,s,t,1\nA,s,t,2\nA,s,t,3\n"
    assert parse_csv_text(text).utilities == ("A", "B")


def test_parse_csv_text_requires_two_lines():
    with pytest.raises(EmptySource):
        parse_csv_text("Utility,Source,Target,Value\n\n   \n")


def test_parse_csv_text_requires_all_columns():
    with pytest.raises(MissingColumns) as excinfo:
        parse_csv_text("Utility,Source,Amount\nU1,S1,5\n")
    assert "Utility, Source, Target, Value" in excinfo.value.message


def test_parse_csv_text_without_valid_rows():
    with pytest.raises(NoValidRows):
        parse_csv_text("Utility,Source,Target,Value\n,S1,T1,5\n")


def test_parse_spreadsheet_rows_matches_keys_case_insensitively():
    rows = [
        {"UTILITY": "U1", "source": "S1", "Target": "T1", "VALUE": 1200.0},
        {"UTILITY": "U1", "source": "S1", "Target": "Loss A", "VALUE": "$1,050.5"},
        {"UTILITY": "", "source": "S2", "Target": "T2", "VALUE": 3},
    ]
    result = parse_spreadsheet_rows(rows)
    assert result.table == (
        Record("U1", "S1", "T1", "1200"),
        Record("U1", "S1", "Loss A", "1050.5"),
    )


def test_parse_spreadsheet_rows_errors():
    with pytest.raises(EmptySource) as excinfo:
        parse_spreadsheet_rows([])
    assert excinfo.value.message == "No data found in Excel file."
    with pytest.raises(NoValidRows) as excinfo:
        parse_spreadsheet_rows([{"Name": "x", "Amount": 1}])
    assert "Ensure columns" in excinfo.value.message


def test_ingestor_reads_csv_bytes_with_bom():
    content = "Utility,Source,Target,Value\nU1,S1,T1,$5\n".encode("utf-8-sig")
    result = Ingestor().ingest("farm.csv", io.BytesIO(content))
    assert result.table == (Record("U1", "S1", "T1", "5"),)


def test_ingestor_reads_excel_workbook():
    df = pd.DataFrame({
        "Source": ["S1", "S1", None],
        "utility": ["U2", "U1", None],
        "TARGET": ["T1", "Lost Energy", None],
        "Value": [100, 25, None],
    })
    buffer = io.BytesIO()
    df.to_excel(buffer, index=False)
    result = Ingestor(PandasExcelDecoder()).ingest("farm.xlsx", buffer.getvalue())
    assert result.table == (
        Record("U2", "S1", "T1", "100"),
        Record("U1", "S1", "Lost Energy", "25"),
    )
    assert result.utilities == ("U1", "U2")


def test_ingestor_without_decoder_rejects_excel():
    with pytest.raises(LibraryUnavailable):
        Ingestor().ingest("farm.xlsx", b"PK")


def test_ingestor_uses_injected_decoder():
    decoder = StaticDecoder([{"Utility": "U1", "Source": "S1", "Target": "T1", "Value": "7"}])
    result = Ingestor(decoder).ingest("farm.xls", b"")
    assert result.table == (Record("U1", "S1", "T1", "7"),)


def test_ingestor_wraps_unexpected_errors():
    with pytest.raises(ParseFailure) as excinfo:
        Ingestor(BrokenDecoder()).ingest("farm.xlsx", b"PK")
    assert excinfo.value.message == "Error parsing file: corrupt workbook"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_unsupported_file_is_rejected_before_reading():
    class Unreadable:
        def read(self):
            raise AssertionError("content must not be read")

    with pytest.raises(UnsupportedFileType):
        Ingestor().ingest("farm.pdf", Unreadable())


def test_records_to_frame_columns():
    frame = records_to_frame([Record("U1", "S1", "T1", "5")])
    assert frame.columns.tolist() == ["Utility", "Source", "Target", "Value"]
    assert frame.iloc[0]["Target"] == "T1"


def test_decode_text_reads_utf8_beyond_the_first_block():
    lines = ["Utility,Source,Target,Value"] + ["U1,Farm,T,1"] * 500 + ["U1,Café Farm,T,5"]
    content = "\n".join(lines).encode("utf-8")
    assert len(content) > 4096
    result = Ingestor().ingest("farm.csv", content)
    assert result.table[-1] == Record("U1", "Café Farm", "T", "5")
    assert len(result.table) == 501


def test_decode_text_falls_back_to_detected_encoding():
    text = "Utility,Source,Target,Value\n" + "U1,Café Farm,Coût total,5\n" * 20
    assert decode_text(text.encode("latin-1")) == text
