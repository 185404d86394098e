"""Process-wide upload state: the parsed table and its utilities."""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from decoders.base import SpreadsheetDecoder

from .data_loader import FileLike, IngestResult, Ingestor, Record
from .errors import IngestError
from .flow_format import NO_ROWS_MESSAGE, format_flows

logger = logging.getLogger(__name__)

SELECT_PROMPT = "Please select a utility."


class SessionContext:
    """Owns the single live table and the utilities derived from it.

    A failed upload never overwrites a previously loaded table; the new
    table is committed only after a successful parse.
    """

    def __init__(self, decoder: Optional[SpreadsheetDecoder] = None):
        self.ingestor = Ingestor(decoder)
        self.table: Optional[Tuple[Record, ...]] = None
        self.utilities: Tuple[str, ...] = ()
        self.last_error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.table is not None

    @property
    def default_utility(self) -> Optional[str]:
        return self.utilities[0] if self.utilities else None

    def load(self, file_name: str, content: Union[bytes, str, FileLike]) -> IngestResult:
        try:
            result = self.ingestor.ingest(file_name, content)
        except IngestError as exc:
            self.last_error = exc.message
            raise
        self.table = result.table
        self.utilities = result.utilities
        self.last_error = None
        logger.info("Loaded %d rows across %d utilities", len(result.table), len(result.utilities))
        return result

    def render(self, utility: Optional[str]) -> str:
        """Return the flow text for ``utility`` or a display message."""

        if not utility:
            return SELECT_PROMPT
        if self.table is None:
            return NO_ROWS_MESSAGE
        return format_flows(self.table, utility)

    def reset(self) -> None:
        self.table = None
        self.utilities = ()
        self.last_error = None
