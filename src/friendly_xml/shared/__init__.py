"""Shared utilities for friendly XML services.

This module provides shared data structures, configuration objects, result types,
and text position helpers used by every service layer.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    DiagnosticsConfig,
    FriendlyViewConfig,
    GlobalConfig,
    ScopeConfig,
    SearchConfig,
    ToolkitConfig,
)
from .errors import FriendlyXmlError, OperationCancelledError
from .logging import CorrelationLogger, get_logger, new_correlation_id
from .result import (
    OperationErrorKind,
    OperationResult,
    ParseProblem,
    ProblemSeverity,
)
from .text import (
    CaseInsensitiveDict,
    line_column_to_offset,
    local_name,
    offset_to_line_column,
    preview_line,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DiagnosticsConfig",
    "FriendlyViewConfig",
    "GlobalConfig",
    "ScopeConfig",
    "SearchConfig",
    "ToolkitConfig",
    "FriendlyXmlError",
    "OperationCancelledError",
    "CorrelationLogger",
    "get_logger",
    "new_correlation_id",
    "OperationErrorKind",
    "OperationResult",
    "ParseProblem",
    "ProblemSeverity",
    "CaseInsensitiveDict",
    "line_column_to_offset",
    "local_name",
    "offset_to_line_column",
    "preview_line",
]
