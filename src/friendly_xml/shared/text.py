"""Text position helpers shared by diagnostics, scope scanning and search.

All line and column numbers are 1-based. Only ``\\n`` starts a new line for
offset conversions; ``\\r`` is treated as an ordinary character there.
"""

import re
from typing import Iterator, MutableMapping, Optional, Tuple, TypeVar

V = TypeVar("V")

_NUMERIC_RE = re.compile(r"^[+-]?\d+(?:[.,]\d+)?$")

ELLIPSIS = "…"
DEFAULT_PREVIEW_LENGTH = 240


def line_column_to_offset(text: str, line: int, column: int) -> int:
    """Convert a 1-based line/column pair to a 0-based offset into ``text``.

    The result is clamped to ``[0, len(text) - 1]``.
    """
    if not text:
        return 0

    index = 0
    current_line = 1
    if line > 1:
        while index < len(text) and current_line < line:
            if text[index] == "\n":
                current_line += 1
            index += 1

    offset = index + (max(1, column) - 1)
    return _clamp(offset, len(text))


def offset_to_line_column(text: str, offset: int) -> Tuple[int, int]:
    """Convert a 0-based offset to a 1-based (line, column) pair."""
    if offset < 0 or not text:
        return 1, 1

    offset = _clamp(offset, len(text))

    line = 1
    last_line_start = 0
    newline = text.find("\n", 0, offset)
    while newline >= 0:
        line += 1
        last_line_start = newline + 1
        newline = text.find("\n", last_line_start, offset)

    return line, max(1, offset - last_line_start + 1)


def line_bounds(text: str, offset: int) -> Tuple[int, int]:
    """Return [start, end) of the ``\\r``/``\\n``-delimited line holding ``offset``."""
    offset = max(0, min(offset, len(text)))

    start = offset
    while start > 0 and text[start - 1] not in "\r\n":
        start -= 1

    end = offset
    while end < len(text) and text[end] not in "\r\n":
        end += 1

    return start, end


def preview_line(text: str, offset: int, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Return the trimmed line around ``offset``, truncated with an ellipsis."""
    if not text:
        return ""

    start, end = line_bounds(text, offset)
    line = text[start:end].strip()
    if len(line) > limit:
        return line[:limit] + ELLIPSIS
    return line


def local_name(name: str) -> str:
    """Strip a ``{namespace}`` or ``prefix:`` qualifier from an XML name."""
    if name.startswith("{"):
        name = name.rpartition("}")[2]
    if ":" in name:
        name = name.split(":", 1)[1]
    return name


def is_numeric_like(value: str) -> bool:
    """Check if a value looks like a plain number (``42``, ``-3.5``, ``1,25``)."""
    return bool(_NUMERIC_RE.match(value.strip()))


def _clamp(offset: int, length: int) -> int:
    if offset < 0:
        return 0
    if offset >= length:
        return max(0, length - 1)
    return offset


class CaseInsensitiveDict(MutableMapping[str, V]):
    """Mapping with case-insensitive string keys that remembers original casing.

    Iteration follows insertion order.
    """

    def __init__(self, data: Optional[dict] = None) -> None:
        self._store: dict = {}
        if data:
            self.update(data)

    def __setitem__(self, key: str, value: V) -> None:
        self._store[key.casefold()] = (key, value)

    def __getitem__(self, key: str) -> V:
        return self._store[key.casefold()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._store

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"
