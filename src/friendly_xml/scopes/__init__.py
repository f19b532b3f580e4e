"""Element scope ranges for folding, outline and indent guides.

Key Components:
    ScopeRange: Start line, end line and depth of one element
    get_scopes: Tolerant scanner that never raises on malformed text
    get_scope_ranges: Conformant scan with tolerant fallback
    line_depths: Per-line depth derived from a set of ranges
"""

from .ranges import ScopeRange, line_depths
from .sources import (
    ConformantScopeSource,
    ScopeSource,
    TolerantScopeSource,
    get_scope_ranges,
)
from .tolerant import TolerantScopeScanner, get_scopes

__all__ = [
    "ScopeRange",
    "line_depths",
    "ConformantScopeSource",
    "ScopeSource",
    "TolerantScopeSource",
    "get_scope_ranges",
    "TolerantScopeScanner",
    "get_scopes",
]
