"""Identifier resolution for friendly view entries.

Picks, from the attributes and leaf children of an element, the value that
best serves as a human display string (``IdentifierMode.DISPLAY``) or as a
stable key (``IdentifierMode.KEY``).

Scoring is table driven: ``DISPLAY_NAME_RULES`` and ``KEY_NAME_RULES`` are
ordered ``(predicate, score)`` lists where the first matching rule gives the
name priority, and ``VALUE_RULES`` lists the value adjustments that are summed
on top. The tables are part of the public contract; existing data files rely
on them ranking candidates exactly this way.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence, Tuple

from lxml import etree

from friendly_xml.shared.text import is_numeric_like, local_name
from friendly_xml.shared.xml import (
    child_elements,
    element_name,
    element_value,
    has_child_elements,
)

MAX_CANDIDATE_VALUE_LENGTH = 500
OVERSIZED_VALUE_SCORE = -5000

_HAS_LETTER_RE = re.compile(r"[^\W\d_]")


class IdentifierMode(Enum):
    """What the resolved identifier is used for."""

    DISPLAY = auto()    # Human readable label
    KEY = auto()        # Stable lookup key


@dataclass(frozen=True)
class Candidate:
    """A (name, value) pair considered as an identifier."""

    name: str
    value: str


NameRule = Tuple[Callable[[str], bool], int]
ValueRule = Tuple[Callable[[Candidate, IdentifierMode], bool], int]


def _exact(*names: str) -> Callable[[str], bool]:
    return lambda upper: upper in names


def _suffix(*suffixes: str) -> Callable[[str], bool]:
    return lambda upper: any(upper.endswith(s) for s in suffixes)


def _contains(*parts: str) -> Callable[[str], bool]:
    return lambda upper: any(p in upper for p in parts)


def _exact_or_suffix(*names: str) -> Callable[[str], bool]:
    return lambda upper: any(upper == n or upper.endswith(n) for n in names)


# Evaluated top to bottom against the upper-cased field name; first match wins.
DISPLAY_NAME_RULES: List[NameRule] = [
    (_exact("FULLNAME"), 5000),
    (_exact("DISPLAYNAME"), 4500),
    (_exact("NAME"), 4000),
    (_exact("TITLE"), 3800),
    (_exact("DESCRIPTION"), 3600),
    (_exact("AGENCYID"), 3500),
    (_exact("LABEL"), 3400),
    (_exact("GROUPNAME"), 3300),
    (_exact("MODITEMNAME"), 3200),
    (_exact("INTERNALGAMENAME", "ZONEINTERNALGAMENAME"), -2500),
    (_exact_or_suffix("TYPENAME"), -2000),
    (_exact_or_suffix("MEASUREMENTNAME"), -1800),
    (_contains("TEMPERATURE", "WINDSPEED", "WINDDIRECTION", "DATETIME"), -1600),
    (_suffix("NAME"), 3000),
    (_suffix("TITLE"), 2950),
    (_suffix("DESCRIPTION"), 2800),
    (_suffix("LABEL"), 2700),
    (_suffix("DESC"), 2600),
    (_exact_or_suffix("ID", "KEY"), 800),
]

KEY_NAME_RULES: List[NameRule] = [
    (_exact("ID"), 5000),
    (_suffix("GUID"), 3400),
    (_suffix("ID"), 4200),
    (_exact_or_suffix("KEY"), 3800),
    (_suffix("HASH"), 3200),
    (_exact_or_suffix("TYPENAME", "MEASUREMENTNAME"), -1200),
]


def _nice_name_shape(candidate: Candidate, mode: IdentifierMode) -> bool:
    value = candidate.value
    return (
        mode is IdentifierMode.DISPLAY
        and 2 <= len(value) <= 120
        and bool(_HAS_LETTER_RE.search(value))
    )


def _numeric_display(candidate: Candidate, mode: IdentifierMode) -> bool:
    return mode is IdentifierMode.DISPLAY and is_numeric_like(candidate.value)


def _numeric_key(candidate: Candidate, mode: IdentifierMode) -> bool:
    return mode is IdentifierMode.KEY and is_numeric_like(candidate.value)


def _reasonable_length(candidate: Candidate, mode: IdentifierMode) -> bool:
    return 3 <= len(candidate.value) <= 120


def _boolean_like_name(candidate: Candidate, mode: IdentifierMode) -> bool:
    return candidate.name.startswith("Is")


def _flag_like_name(candidate: Candidate, mode: IdentifierMode) -> bool:
    upper = candidate.name.upper()
    return "ENABLED" in upper or "DISABLED" in upper or "FLAGS" in upper


# Every matching rule contributes; these are summed with the name priority.
VALUE_RULES: List[ValueRule] = [
    (_nice_name_shape, 600),
    (_numeric_display, -900),
    (_numeric_key, 150),
    (_reasonable_length, 50),
    (_boolean_like_name, -800),
    (_flag_like_name, -800),
]


def name_priority(field_name: str, mode: IdentifierMode) -> int:
    """Return the priority of a field name under the given mode."""
    upper = field_name.upper()
    rules = DISPLAY_NAME_RULES if mode is IdentifierMode.DISPLAY else KEY_NAME_RULES
    for predicate, score in rules:
        if predicate(upper):
            return score
    return 0


def score_candidate(candidate: Candidate, mode: IdentifierMode) -> int:
    """Score a candidate; higher is better."""
    if len(candidate.value) > MAX_CANDIDATE_VALUE_LENGTH:
        return OVERSIZED_VALUE_SCORE

    score = name_priority(candidate.name, mode)
    for predicate, adjustment in VALUE_RULES:
        if predicate(candidate, mode):
            score += adjustment
    return score


def gather_candidates(element: etree._Element) -> List[Candidate]:
    """Collect identifier candidates in resolution order.

    Attributes first, then childless child elements, then the element's own
    value when it has no child elements.
    """
    candidates: List[Candidate] = []

    def add(name: str, value: Optional[str]) -> None:
        value = (value or "").strip()
        if name and value:
            candidates.append(Candidate(name, value))

    for attr_name, attr_value in element.attrib.items():
        add(local_name(attr_name), attr_value)

    children = child_elements(element)
    for child in children:
        if not has_child_elements(child):
            add(element_name(child), element_value(child))

    if not children:
        add(element_name(element), element_value(element))

    return candidates


def pick_best(candidates: Sequence[Candidate], mode: IdentifierMode) -> Optional[Candidate]:
    """Return the highest scoring candidate, keeping the first on ties."""
    best: Optional[Candidate] = None
    best_score = 0
    for candidate in candidates:
        score = score_candidate(candidate, mode)
        if best is None or score > best_score:
            best, best_score = candidate, score
    return best


def resolve_identifier(element: etree._Element, mode: IdentifierMode) -> Optional[str]:
    """Resolve a display string or key for ``element``.

    Returns:
        The winning candidate value, or None when the element offers no
        non-empty attribute or leaf value.
    """
    best = pick_best(gather_candidates(element), mode)
    return best.value if best is not None else None
