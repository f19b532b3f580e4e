"""Friendly XML.

Schema-less XML tooling for editors: flattened, editable friendly views of
repeating records, parse diagnostics with precise positions, element scope
ranges that survive malformed input, and raw or field-level search across
many files.

Progressive API Disclosure:
- Level 1: Simple functions - try_build(), get_parse_problems(), get_scopes()
- Level 2: Configured services - FriendlyViewBuilder, ParseDiagnosticsEngine,
  RawSearchEngine, FriendlySearchEngine
- Level 3: Toolkit configuration - ToolkitConfig presets and overrides
"""

__version__ = "0.1.0"
__author__ = "Friendly XML Team"

# Progressive API disclosure - Level 1: Simple functions
from .diagnostics import get_first_parse_problem, get_parse_problems
from .friendly import to_xml, try_build, try_duplicate_entry, try_set_field
from .scopes import get_scope_ranges, get_scopes

# Progressive API disclosure - Level 2: Configured services
from .diagnostics import ParseDiagnosticsEngine
from .friendly import Collection, Entry, Field, FriendlyDocument, FriendlyViewBuilder
from .scopes import ScopeRange
from .search import (
    CancellationToken,
    FriendlyHit,
    FriendlySearchEngine,
    RawHit,
    RawSearchEngine,
    find_xml_files,
)

# Configuration classes and result types
from .shared import (
    OperationCancelledError,
    OperationErrorKind,
    OperationResult,
    ParseProblem,
    ProblemSeverity,
    ToolkitConfig,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "get_first_parse_problem",
    "get_parse_problems",
    "get_scope_ranges",
    "get_scopes",
    "to_xml",
    "try_build",
    "try_duplicate_entry",
    "try_set_field",

    # Level 2: Configured services and views
    "ParseDiagnosticsEngine",
    "FriendlyViewBuilder",
    "FriendlyDocument",
    "Collection",
    "Entry",
    "Field",
    "ScopeRange",
    "RawSearchEngine",
    "FriendlySearchEngine",
    "CancellationToken",
    "RawHit",
    "FriendlyHit",
    "find_xml_files",

    # Configuration and results
    "ToolkitConfig",
    "OperationCancelledError",
    "OperationErrorKind",
    "OperationResult",
    "ParseProblem",
    "ProblemSeverity",
]
