"""Base class for spreadsheet decoders."""

from __future__ import annotations

from typing import Any, Dict, List


class SpreadsheetDecoder:
    """Abstract decoder turning workbook bytes into row dictionaries.

    Implementations read the first sheet, use its first row as keys and
    return one dictionary per non-blank row.  Blank cells map to ``""``.
    """

    engine_name: str = ""

    def decode(self, content: bytes, file_name: str = "") -> List[Dict[str, Any]]:
        raise NotImplementedError
