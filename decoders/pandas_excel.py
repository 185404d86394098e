"""Excel decoder backed by :func:`pandas.read_excel`."""

from __future__ import annotations

import importlib.util
import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from waterfall.errors import LibraryUnavailable

from .base import SpreadsheetDecoder

logger = logging.getLogger(__name__)

# Engine pandas needs for each workbook suffix.
ENGINES = {
    ".xlsx": "openpyxl",
    ".xls": "xlrd",
}


def engine_available(engine: str) -> bool:
    return importlib.util.find_spec(engine) is not None


class PandasExcelDecoder(SpreadsheetDecoder):
    """Read the first worksheet of an ``.xlsx``/``.xls`` workbook.

    The ``openpyxl`` engine is required; construction fails with
    :class:`LibraryUnavailable` when it cannot be imported.
    """

    engine_name = "openpyxl"

    def __init__(self):
        if not engine_available(self.engine_name):
            raise LibraryUnavailable()

    def _engine_for(self, file_name: str) -> Optional[str]:
        lower_name = file_name.lower()
        for suffix, engine in ENGINES.items():
            if lower_name.endswith(suffix):
                if not engine_available(engine):
                    raise LibraryUnavailable()
                return engine
        return None

    def decode(self, content: bytes, file_name: str = "") -> List[Dict[str, Any]]:
        engine = self._engine_for(file_name)
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            dtype=object,
            engine=engine,
        )
        df = df.dropna(how="all")
        df = df.astype(object).where(pd.notna(df), "")
        return df.to_dict(orient="records")


def build_default_decoder() -> Optional[SpreadsheetDecoder]:
    """Return the pandas decoder, or ``None`` when Excel support is missing."""

    try:
        return PandasExcelDecoder()
    except LibraryUnavailable:
        logger.warning("openpyxl is not installed; Excel uploads are disabled")
        return None
