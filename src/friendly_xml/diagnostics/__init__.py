"""Parse diagnostics for raw XML text.

Key Components:
    ParseDiagnosticsEngine: Conformance scan plus lint pass producing ParseProblem lists
    get_parse_problems: Module-level entry point using the default configuration
    validate_well_formed / format_xml: Whole-document checks used by editors
"""

from .engine import (
    ParseDiagnosticsEngine,
    adjust_offset,
    format_xml,
    get_first_parse_problem,
    get_parse_problems,
    parse_mismatched_tag,
    shift_to_second_start_tag,
    validate_well_formed,
)
from .lint import UNEXPECTED_TEXT_MESSAGE, find_unexpected_text_between_elements

__all__ = [
    "ParseDiagnosticsEngine",
    "adjust_offset",
    "format_xml",
    "get_first_parse_problem",
    "get_parse_problems",
    "parse_mismatched_tag",
    "shift_to_second_start_tag",
    "validate_well_formed",
    "UNEXPECTED_TEXT_MESSAGE",
    "find_unexpected_text_between_elements",
]
