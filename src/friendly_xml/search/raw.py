"""Raw text search over a set of files."""

import re
import time
from typing import Callable, Iterator, List, Optional, Sequence

from friendly_xml.shared import SearchConfig, get_logger
from friendly_xml.shared.text import offset_to_line_column, preview_line

from .cancellation import CancellationToken
from .discovery import read_xml_text
from .hits import RawHit

FileCallback = Callable[[str], None]


def find_matches(text: str, query: str, case_sensitive: bool) -> Iterator[re.Match]:
    """Yield non-overlapping matches of ``query`` as a literal string."""
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.finditer(re.escape(query), text, flags)


def contains(text: str, query: str, case_sensitive: bool) -> bool:
    """Check whether ``query`` occurs in ``text``."""
    if case_sensitive:
        return query in text
    return re.search(re.escape(query), text, re.IGNORECASE) is not None


class RawSearchEngine:
    """Sequential substring search reporting line, column and a line preview.

    Examples:
        >>> engine = RawSearchEngine()
        >>> hits = engine.search(["a.xml"], "Bolt", case_sensitive=False)  # doctest: +SKIP
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or SearchConfig()
        self.logger = get_logger(__name__, correlation_id, "raw_search")

    def search(
        self,
        paths: Sequence[str],
        query: str,
        case_sensitive: bool = False,
        max_results: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
        on_file_done: Optional[FileCallback] = None,
        on_current_file: Optional[FileCallback] = None,
    ) -> List[RawHit]:
        """Search ``paths`` in order, stopping as soon as ``max_results`` hits exist.

        Args:
            paths: Files to search; missing or unreadable files are skipped
            query: Literal text to find
            case_sensitive: Ordinal comparison when True
            max_results: Hit cap (defaults to the configured cap)
            cancel: Token checked before every file and every match
            on_file_done: Called with each path once it has been processed,
                including skipped files
            on_current_file: Called with each path before it is read

        Returns:
            Hits in file order, then document order

        Raises:
            ValueError: ``paths`` is None
            OperationCancelledError: ``cancel`` fired
        """
        if paths is None:
            raise ValueError("paths is required")
        if max_results is None:
            max_results = self.config.max_results
        if not query or not query.strip() or max_results <= 0:
            return []

        start_time = time.time()
        hits: List[RawHit] = []

        for path in paths:
            if cancel is not None:
                cancel.raise_if_cancelled()
            if path and path.strip() and on_current_file is not None:
                on_current_file(path)

            try:
                text = read_xml_text(path, self.config.encoding)
                if text is None:
                    continue

                for match in find_matches(text, query, case_sensitive):
                    if cancel is not None:
                        cancel.raise_if_cancelled()

                    offset = match.start()
                    line, column = offset_to_line_column(text, offset)
                    hits.append(RawHit(
                        path,
                        offset,
                        match.end() - offset,
                        line,
                        column,
                        preview_line(text, offset, self.config.preview_length),
                    ))
                    if len(hits) >= max_results:
                        return hits
            finally:
                if on_file_done is not None:
                    on_file_done(path)

        self.logger.info(
            "Raw search completed",
            extra={
                "files": len(paths),
                "hits": len(hits),
                "processing_time_ms": (time.time() - start_time) * 1000,
            },
        )
        return hits
