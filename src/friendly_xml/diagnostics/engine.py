"""Parse diagnostics with offset localisation.

Runs a conformant lxml parse (no DTDs, no entity resolution, no network). A
well-formedness failure becomes exactly one Error problem whose position is
corrected by message-driven heuristics; a clean parse is followed by the lint
pass. Nothing in this module raises to the caller.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from lxml import etree

from friendly_xml.shared import (
    DiagnosticsConfig,
    ParseProblem,
    ProblemSeverity,
    get_logger,
)
from friendly_xml.shared.text import line_bounds, line_column_to_offset, offset_to_line_column
from friendly_xml.shared.xml import DoctypeProhibitedError, parse_tree, xml_declaration

from .lint import find_unexpected_text_between_elements

GENERIC_ERROR_MESSAGE = "XML parse error."

# "The 'Item' start tag on line 3 position 4 does not match the end tag of 'Root'."
_POSITIONED_MISMATCH_RE = re.compile(
    r"start tag on line\s+(\d+)\s+position\s+(\d+)", re.IGNORECASE
)
_POSITIONED_MISMATCH_NAMES_RE = re.compile(
    r"'([^']+)' start tag.*end tag of '([^']+)'", re.IGNORECASE
)
# libxml2: "Opening and ending tag mismatch: Item line 3 and Root"
_LIBXML_MISMATCH_RE = re.compile(
    r"Opening and ending tag mismatch:\s*(\S+)\s+line\s+(\d+)\s+and\s+([^\s,]+)",
    re.IGNORECASE,
)
_EXPECTED_GT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"expected token is '>'", re.IGNORECASE),
    re.compile(r"expected '>'", re.IGNORECASE),
    re.compile(r"Couldn't find end of Start Tag", re.IGNORECASE),
]
_DOCTYPE_RE = re.compile(r"<!DOCTYPE", re.IGNORECASE)

logger = get_logger(__name__, component="diagnostics")


@dataclass(frozen=True)
class MismatchedTag:
    """Start tag named in a mismatched end-tag error."""

    line: int
    column: Optional[int]   # None when the message carries only a line
    start_tag: str
    end_tag: str


def parse_mismatched_tag(message: str) -> Optional[MismatchedTag]:
    """Extract the offending start tag from a mismatched end-tag message."""
    located = _POSITIONED_MISMATCH_RE.search(message)
    if located:
        names = _POSITIONED_MISMATCH_NAMES_RE.search(message)
        if not names or not names.group(1).strip():
            return None
        return MismatchedTag(
            int(located.group(1)), int(located.group(2)), names.group(1), names.group(2)
        )

    libxml = _LIBXML_MISMATCH_RE.search(message)
    if libxml:
        return MismatchedTag(int(libxml.group(2)), None, libxml.group(1), libxml.group(3))

    return None


def shift_to_second_start_tag(text: str, offset: int, tag_name: str) -> int:
    """Move ``offset`` to the second ``<tag_name`` on its line, if there is one.

    The parser blames the outer start tag, but when a tag was pasted twice on
    one line the second copy is the one the author needs to fix.
    """
    if offset < 0:
        return 0
    if offset >= len(text):
        return max(0, len(text) - 1)
    if not tag_name.strip():
        return offset

    line_start, line_end = line_bounds(text, offset)
    line_text = text[line_start:line_end]
    token = "<" + tag_name

    first = line_text.find(token)
    if first < 0:
        return offset
    second = line_text.find(token, first + len(token))
    if second < 0:
        return offset
    return line_start + second


def adjust_offset(text: str, offset: int, message: str) -> int:
    """Point "expected '>'" errors at the end of the unterminated tag.

    The parser reports the ``<`` of the next tag; backing up over whitespace
    lands on the last character of the tag that was left open.
    """
    if offset < 0:
        return 0
    if offset >= len(text):
        return max(0, len(text) - 1)
    if not any(pattern.search(message) for pattern in _EXPECTED_GT_PATTERNS):
        return offset
    if text[offset] != "<":
        return offset

    index = offset - 1
    while index > 0 and text[index] in "\r\n \t":
        index -= 1
    return max(0, index)


def _mismatch_offset(text: str, mismatch: MismatchedTag) -> int:
    if mismatch.column is not None:
        offset = line_column_to_offset(text, mismatch.line, mismatch.column)
    else:
        line_start = line_column_to_offset(text, mismatch.line, 1)
        _, line_end = line_bounds(text, line_start)
        first = text.find("<" + mismatch.start_tag, line_start, line_end)
        offset = first if first >= 0 else line_start
    return shift_to_second_start_tag(text, offset, mismatch.start_tag)


def _problem_at(text: str, message: str, offset: int, severity: ProblemSeverity) -> ParseProblem:
    line, column = offset_to_line_column(text, offset)
    return ParseProblem(message, max(0, offset), line, column, severity)


def _syntax_error_problem(text: str, error: etree.XMLSyntaxError) -> ParseProblem:
    message = str(error) or GENERIC_ERROR_MESSAGE
    line, column = error.position if error.position else (0, 0)
    offset = line_column_to_offset(text, line or 1, column or 1)

    mismatch = parse_mismatched_tag(message)
    if mismatch is not None:
        offset = _mismatch_offset(text, mismatch)

    offset = adjust_offset(text, offset, message)
    return _problem_at(text, message, offset, ProblemSeverity.ERROR)


class ParseDiagnosticsEngine:
    """Produces parse problems for editor decoration.

    Examples:
        >>> engine = ParseDiagnosticsEngine()
        >>> engine.get_parse_problems("<a><b>x</b>oops<c>y</c></a>")[0].severity
        <ProblemSeverity.WARNING: 2>
    """

    def __init__(self, config: Optional[DiagnosticsConfig] = None) -> None:
        self.config = config or DiagnosticsConfig()

    def get_parse_problems(self, xml_text: str) -> List[ParseProblem]:
        """Return all problems for ``xml_text`` (empty for blank input)."""
        if not xml_text or not xml_text.strip():
            return []

        try:
            parse_tree(xml_text, prohibit_dtd=self.config.prohibit_dtd)
        except etree.XMLSyntaxError as e:
            problem = _syntax_error_problem(xml_text, e)
            logger.debug(
                "Document is not well-formed",
                extra={"line": problem.line, "column": problem.column},
            )
            return [problem]
        except DoctypeProhibitedError as e:
            match = _DOCTYPE_RE.search(xml_text)
            offset = match.start() if match else 0
            return [_problem_at(xml_text, str(e), offset, ProblemSeverity.ERROR)]
        except Exception as e:
            logger.exception("Unexpected failure during conformance scan")
            return [ParseProblem(str(e) or GENERIC_ERROR_MESSAGE, 0, 1, 1,
                                 ProblemSeverity.ERROR)]

        if not self.config.enable_lint:
            return []
        return find_unexpected_text_between_elements(
            xml_text, self.config.max_lint_findings
        )

    def get_first_parse_problem(self, xml_text: str) -> Optional[ParseProblem]:
        """Return the first problem, or None for a clean document."""
        problems = self.get_parse_problems(xml_text)
        return problems[0] if problems else None


def validate_well_formed(xml_text: str, prohibit_dtd: bool = True) -> Tuple[bool, str]:
    """Check well-formedness, returning ``(is_valid, message)``."""
    if not xml_text or not xml_text.strip():
        return False, "XML document is empty."
    try:
        parse_tree(xml_text, prohibit_dtd=prohibit_dtd)
    except (etree.XMLSyntaxError, DoctypeProhibitedError) as e:
        return False, str(e)
    return True, "XML is well-formed."


def format_xml(xml_text: str, prohibit_dtd: bool = True) -> str:
    """Pretty-print ``xml_text``; the declaration is kept only if present.

    Raises:
        etree.XMLSyntaxError: The text is not well-formed
    """
    tree = parse_tree(xml_text, prohibit_dtd=prohibit_dtd, remove_blank_text=True)
    body = etree.tostring(tree, pretty_print=True, encoding="unicode")
    declaration = xml_declaration(xml_text).rstrip()
    return f"{declaration}\n{body}" if declaration else body


_default_engine = ParseDiagnosticsEngine()


def get_parse_problems(xml_text: str) -> List[ParseProblem]:
    """Return parse problems using the default configuration."""
    return _default_engine.get_parse_problems(xml_text)


def get_first_parse_problem(xml_text: str) -> Optional[ParseProblem]:
    """Return the first parse problem using the default configuration."""
    return _default_engine.get_first_parse_problem(xml_text)
