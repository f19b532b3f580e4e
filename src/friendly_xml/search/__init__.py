"""File-set search: raw text matches and friendly-field matches.

Key Components:
    RawSearchEngine: Sequential substring search with line/column and preview
    FriendlySearchEngine: Bounded-parallel search over friendly-view fields
    CancellationToken: Cooperative cancellation shared with callers
    find_xml_files: Discovery of the files to search
"""

from .cancellation import CancellationToken
from .discovery import find_xml_files, read_xml_text
from .friendly import FriendlySearchEngine, default_worker_count
from .hits import FriendlyHit, RawHit
from .raw import RawSearchEngine

__all__ = [
    "CancellationToken",
    "find_xml_files",
    "read_xml_text",
    "FriendlySearchEngine",
    "default_worker_count",
    "FriendlyHit",
    "RawHit",
    "RawSearchEngine",
]
