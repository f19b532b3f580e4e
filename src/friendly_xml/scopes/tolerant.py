"""Tolerant scope scanner.

A hand-written character scanner that derives element line extents and
nesting depth from raw text, including text that does not parse. It never
raises: malformed tags are skipped, stray end tags are ignored and elements
still open at the end are closed on the last line reached.
"""

from typing import List, Tuple

from .ranges import ScopeRange

_COMMENT_OPEN = "<!--"
_CDATA_OPEN = "<![CDATA["


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_:-."


class TolerantScopeScanner:
    """Single-use scanner over one text; call ``scan()`` once."""

    def __init__(self, xml_text: str) -> None:
        self.text = xml_text
        self.length = len(xml_text)
        self.pos = 0
        self.line = 1
        self.ranges: List[ScopeRange] = []
        self._stack: List[Tuple[int, int]] = []  # (start_line, depth)

    def scan(self) -> List[ScopeRange]:
        text = self.text
        if not text or not text.strip():
            return []

        while self.pos < self.length:
            ch = text[self.pos]

            if ch in "\r\n":
                self._consume_line_break()
                continue
            if ch != "<":
                self.pos += 1
                continue
            if self.pos + 1 >= self.length:
                break

            if text.startswith(_COMMENT_OPEN, self.pos):
                self._skip_until("-->", self.pos + len(_COMMENT_OPEN))
                continue
            if text.startswith(_CDATA_OPEN, self.pos):
                self._skip_until("]]>", self.pos + len(_CDATA_OPEN))
                continue
            if text[self.pos + 1] == "?":
                self._skip_until("?>", self.pos + 2)
                continue

            if not self._scan_tag():
                break

        last_line = max(1, self.line)
        while self._stack:
            start_line, depth = self._stack.pop()
            self.ranges.append(ScopeRange(start_line, last_line, depth))

        return self.ranges

    def _scan_tag(self) -> bool:
        """Handle the tag at ``self.pos``; False when the input ends mid-tag."""
        text = self.text
        tag_start = self.pos
        tag_line = self.line
        is_end_tag = text[tag_start + 1] == "/"

        line = self.line
        j = tag_start + (2 if is_end_tag else 1)
        while j < self.length and text[j].isspace():
            if text[j] == "\r":
                if j + 1 < self.length and text[j + 1] == "\n":
                    j += 1
                line += 1
            elif text[j] == "\n":
                line += 1
            j += 1

        name_start = j
        while j < self.length and _is_name_char(text[j]):
            j += 1

        if j == name_start:
            # Not a tag we understand; rescan from the next character.
            self.pos = tag_start + 1
            return True

        self.line = line
        tag_end = self._find_tag_end(j)
        if tag_end < 0:
            return False

        if is_end_tag:
            if self._stack:
                start_line, depth = self._stack.pop()
                self.ranges.append(ScopeRange(start_line, tag_line, depth))
        else:
            depth = len(self._stack)
            if self._is_self_closing(tag_start, tag_end):
                self.ranges.append(ScopeRange(tag_line, tag_line, depth))
            else:
                self._stack.append((tag_line, depth))

        self.pos = tag_end + 1
        return True

    def _consume_line_break(self) -> None:
        if (
            self.text[self.pos] == "\r"
            and self.pos + 1 < self.length
            and self.text[self.pos + 1] == "\n"
        ):
            self.pos += 1
        self.line += 1
        self.pos += 1

    def _skip_until(self, terminator: str, start: int) -> None:
        self.pos = start
        while self.pos < self.length:
            if self.text[self.pos] in "\r\n":
                self._consume_line_break()
                continue
            if self.text.startswith(terminator, self.pos):
                self.pos += len(terminator)
                return
            self.pos += 1

    def _find_tag_end(self, start: int) -> int:
        """Index of the ``>`` closing the tag, ignoring quoted values; -1 if none."""
        text = self.text
        i = start
        quote = ""

        while i < self.length:
            ch = text[i]
            if ch == "\r":
                if i + 1 < self.length and text[i + 1] == "\n":
                    i += 1
                self.line += 1
            elif ch == "\n":
                self.line += 1
            elif quote:
                if ch == quote:
                    quote = ""
            elif ch in "\"'":
                quote = ch
            elif ch == ">":
                return i
            i += 1

        return -1

    def _is_self_closing(self, tag_start: int, tag_end: int) -> bool:
        k = tag_end - 1
        while k > tag_start and self.text[k].isspace():
            k -= 1
        return k > tag_start and self.text[k] == "/"


def get_scopes(xml_text: str) -> List[ScopeRange]:
    """Return scope ranges for ``xml_text``, tolerating malformed markup."""
    return TolerantScopeScanner(xml_text).scan()
