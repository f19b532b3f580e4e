"""Friendly-field search over a set of files.

Each file that contains the query at all is built into a friendly view, and
every field whose key or value contains the query becomes a hit. Files are
processed by a bounded thread pool; hits land in a shared lock-guarded bag in
no particular order. Workers stop contributing once the bag holds
``max_results`` hits, and the result is truncated to that cap on return.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

import psutil

from friendly_xml.friendly import Collection, Entry, FriendlyViewBuilder
from friendly_xml.shared import FriendlyViewConfig, SearchConfig, get_logger

from .cancellation import CancellationToken
from .discovery import read_xml_text
from .hits import FriendlyHit
from .raw import FileCallback, contains


def default_worker_count() -> int:
    """Half the logical cores, at least one."""
    cores = psutil.cpu_count(logical=True) or 1
    return max(1, cores // 2)


class _HitBag:
    """Append-only hit collection shared between workers."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._hits: List[FriendlyHit] = []
        self._lock = threading.Lock()

    @property
    def is_full(self) -> bool:
        with self._lock:
            return len(self._hits) >= self.capacity

    def add(self, hit: FriendlyHit) -> None:
        with self._lock:
            self._hits.append(hit)

    def take(self) -> List[FriendlyHit]:
        with self._lock:
            return self._hits[:self.capacity]


class FriendlySearchEngine:
    """Searches friendly-view fields across many files.

    Examples:
        >>> engine = FriendlySearchEngine(SearchConfig(use_parallel=False))
        >>> hits = engine.search(paths, "Bolt")  # doctest: +SKIP
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        friendly_config: Optional[FriendlyViewConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or SearchConfig()
        self.builder = FriendlyViewBuilder(friendly_config, correlation_id)
        self.logger = get_logger(__name__, correlation_id, "friendly_search")

    def worker_count(self, use_parallel: bool) -> int:
        if not use_parallel:
            return 1
        return self.config.max_workers or default_worker_count()

    def search(
        self,
        paths: Sequence[str],
        query: str,
        case_sensitive: bool = False,
        max_results: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
        on_file_done: Optional[FileCallback] = None,
        on_current_file: Optional[FileCallback] = None,
        use_parallel: Optional[bool] = None,
    ) -> List[FriendlyHit]:
        """Return at most ``max_results`` field hits.

        With ``use_parallel=False`` files run one after another on the calling
        thread and hits come back in file order, then document order.

        Raises:
            ValueError: ``paths`` is None
            OperationCancelledError: ``cancel`` fired
        """
        if paths is None:
            raise ValueError("paths is required")
        if max_results is None:
            max_results = self.config.max_results
        if use_parallel is None:
            use_parallel = self.config.use_parallel
        if not paths or not query or not query.strip() or max_results <= 0:
            return []

        start_time = time.time()
        bag = _HitBag(max_results)
        workers = self.worker_count(use_parallel)

        def run(path: str) -> None:
            self._search_file(
                path, query, case_sensitive, bag, cancel, on_file_done, on_current_file
            )

        if workers == 1:
            for path in paths:
                run(path)
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="friendly-search"
            ) as executor:
                futures = [executor.submit(run, path) for path in paths]
                try:
                    for future in as_completed(futures):
                        future.result()
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise

        hits = bag.take()
        self.logger.info(
            "Friendly search completed",
            extra={
                "files": len(paths),
                "hits": len(hits),
                "workers": workers,
                "processing_time_ms": (time.time() - start_time) * 1000,
            },
        )
        return hits

    def _search_file(
        self,
        path: str,
        query: str,
        case_sensitive: bool,
        bag: _HitBag,
        cancel: Optional[CancellationToken],
        on_file_done: Optional[FileCallback],
        on_current_file: Optional[FileCallback],
    ) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        if path and path.strip() and on_current_file is not None:
            on_current_file(path)

        try:
            if bag.is_full:
                return

            text = read_xml_text(path, self.config.encoding)
            if text is None or not contains(text, query, case_sensitive):
                return

            document = self.builder.try_build(text)
            if document is None:
                return

            for collection in document.collections:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                if bag.is_full:
                    return
                for entry in collection.entries:
                    if not self._search_entry(
                        path, collection, entry, query, case_sensitive, bag, cancel
                    ):
                        return
        finally:
            if on_file_done is not None:
                on_file_done(path)

    def _search_entry(
        self,
        path: str,
        collection: Collection,
        entry: Entry,
        query: str,
        case_sensitive: bool,
        bag: _HitBag,
        cancel: Optional[CancellationToken],
    ) -> bool:
        """Add hits for one entry; False once the bag is full."""
        if cancel is not None:
            cancel.raise_if_cancelled()
        if bag.is_full:
            return False

        for field_key, field in entry.fields.items():
            if cancel is not None:
                cancel.raise_if_cancelled()
            if bag.is_full:
                return False

            value = field.value or ""
            if not contains(field_key, query, case_sensitive) and not contains(
                value, query, case_sensitive
            ):
                continue

            preview = f"{field_key}: {value}"[:self.config.preview_length]
            bag.add(FriendlyHit(
                path, collection.title, entry.key, entry.occurrence, field_key, preview
            ))

        return True
