"""Lint pass for well-formed documents.

Streams the document with expat and flags non-whitespace text that appears
inside an element after that element has already had an element child, e.g.
the ``oops`` in ``<a><b>x</b>oops<c>y</c></a>``.
"""

from typing import List, Optional, Tuple
from xml.parsers import expat

from friendly_xml.shared import ParseProblem, ProblemSeverity
from friendly_xml.shared.text import line_column_to_offset, offset_to_line_column

UNEXPECTED_TEXT_MESSAGE = (
    "Unexpected text between elements. Only whitespace is expected here."
)
DEFAULT_MAX_FINDINGS = 50


class _FindingLimitReached(Exception):
    """Stops the expat parse once enough findings were collected."""


class _TextBetweenElementsLinter:
    """Expat handler set tracking a ``has_element_child`` flag per open element."""

    def __init__(self, xml_text: str, max_findings: int) -> None:
        self.xml_text = xml_text
        self.max_findings = max_findings
        self.problems: List[ParseProblem] = []
        self._stack: List[bool] = []
        self._pending: List[str] = []
        self._pending_position: Optional[Tuple[int, int]] = None
        self._parser = expat.ParserCreate()
        self._parser.StartElementHandler = self._start_element
        self._parser.EndElementHandler = self._end_element
        self._parser.CharacterDataHandler = self._character_data
        self._parser.StartCdataSectionHandler = self._flush_event
        self._parser.EndCdataSectionHandler = self._flush_event
        self._parser.CommentHandler = self._flush_event
        self._parser.ProcessingInstructionHandler = self._flush_event

    def run(self) -> List[ParseProblem]:
        if self.max_findings <= 0:
            return []
        try:
            self._parser.Parse(self.xml_text, True)
            self._flush()
        except _FindingLimitReached:
            pass
        except expat.ExpatError:
            # Only reached for input lxml accepted but expat does not; keep
            # whatever was found before the disagreement.
            pass
        return self.problems

    def _start_element(self, name: str, attributes: dict) -> None:
        self._flush()
        if self._stack:
            self._stack[-1] = True
        self._stack.append(False)

    def _end_element(self, name: str) -> None:
        self._flush()
        if self._stack:
            self._stack.pop()

    def _character_data(self, data: str) -> None:
        if self._pending_position is None:
            self._pending_position = (
                self._parser.CurrentLineNumber,
                self._parser.CurrentColumnNumber + 1,
            )
        self._pending.append(data)

    def _flush_event(self, *args: object) -> None:
        self._flush()

    def _flush(self) -> None:
        if self._pending_position is None:
            return

        text = "".join(self._pending)
        line, column = self._pending_position
        self._pending = []
        self._pending_position = None

        if not text.strip() or not self._stack or not self._stack[-1]:
            return

        offset = line_column_to_offset(self.xml_text, line, column)
        line, column = offset_to_line_column(self.xml_text, offset)
        self.problems.append(ParseProblem(
            UNEXPECTED_TEXT_MESSAGE, offset, line, column, ProblemSeverity.WARNING
        ))
        if len(self.problems) >= self.max_findings:
            raise _FindingLimitReached()


def find_unexpected_text_between_elements(
    xml_text: str, max_findings: int = DEFAULT_MAX_FINDINGS
) -> List[ParseProblem]:
    """Return Warning problems for stray text in element-only content."""
    return _TextBetweenElementsLinter(xml_text, max_findings).run()
