"""Spreadsheet decoder exports."""

from .base import SpreadsheetDecoder
from .pandas_excel import PandasExcelDecoder, build_default_decoder

__all__ = [
    "SpreadsheetDecoder",
    "PandasExcelDecoder",
    "build_default_decoder",
]
