"""Scope range sources.

A conformant source streams the document through expat and reports exactly
what a parser sees; it raises on malformed input. The tolerant source never
raises. ``get_scope_ranges`` tries the conformant path first and falls back
to the tolerant scanner whenever it fails, so editors always get ranges.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from xml.parsers import expat

from friendly_xml.shared import ScopeConfig, get_logger
from friendly_xml.shared.xml import DoctypeProhibitedError

from .ranges import ScopeRange
from .tolerant import get_scopes

logger = get_logger(__name__, component="scopes")


class ScopeSource(ABC):
    """Something that can compute scope ranges for a text."""

    name = "abstract"

    @abstractmethod
    def get_ranges(self, xml_text: str) -> List[ScopeRange]:
        """Return scope ranges, in the order elements close."""


class ConformantScopeSource(ScopeSource):
    """Expat-backed source; raises for anything that is not well-formed.

    Raises:
        expat.ExpatError: The text is not well-formed
        DoctypeProhibitedError: The text carries a DOCTYPE declaration
    """

    name = "conformant"

    def get_ranges(self, xml_text: str) -> List[ScopeRange]:
        if not xml_text or not xml_text.strip():
            return []

        parser = expat.ParserCreate()
        ranges: List[ScopeRange] = []
        stack: List[Tuple[int, int]] = []

        def start_element(name: str, attributes: dict) -> None:
            stack.append((parser.CurrentLineNumber, len(stack)))

        def end_element(name: str) -> None:
            # Empty-element tags report their end event on the start line.
            if not stack:
                return
            start_line, depth = stack.pop()
            ranges.append(ScopeRange(start_line, parser.CurrentLineNumber, depth))

        def start_doctype(*args: object) -> None:
            raise DoctypeProhibitedError()

        parser.StartElementHandler = start_element
        parser.EndElementHandler = end_element
        parser.StartDoctypeDeclHandler = start_doctype
        parser.Parse(xml_text, True)
        return ranges


class TolerantScopeSource(ScopeSource):
    """Character-scanner source that never raises."""

    name = "tolerant"

    def get_ranges(self, xml_text: str) -> List[ScopeRange]:
        return get_scopes(xml_text)


def get_scope_ranges(xml_text: str, config: Optional[ScopeConfig] = None) -> List[ScopeRange]:
    """Return scope ranges, falling back to the tolerant scanner on failure.

    Args:
        xml_text: Raw document text, well-formed or not
        config: Scope configuration; ``prefer_conformant=False`` skips the
            conformant attempt

    Returns:
        Scope ranges (empty for blank text)
    """
    config = config or ScopeConfig()
    tolerant = TolerantScopeSource()

    if not config.prefer_conformant:
        return tolerant.get_ranges(xml_text)

    try:
        return ConformantScopeSource().get_ranges(xml_text)
    except (expat.ExpatError, DoctypeProhibitedError, ValueError) as e:
        logger.debug(
            "Conformant scope scan failed, using tolerant scanner",
            extra={"reason": str(e)},
        )
        return tolerant.get_ranges(xml_text)
