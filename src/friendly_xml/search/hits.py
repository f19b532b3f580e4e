"""Search hit records."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class RawHit:
    """One text match inside a file."""

    path: str
    offset: int
    length: int
    line: int
    column: int
    preview: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FriendlyHit:
    """One matching field of a friendly-view entry."""

    path: str
    collection_title: str
    entry_key: str
    entry_occurrence: int
    field_key: str
    preview: str

    @property
    def field_name(self) -> str:
        """Last segment of ``field_key`` (the key itself when it has no ``/``)."""
        head, sep, tail = self.field_key.rpartition("/")
        return tail if sep and tail else self.field_key

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["field_name"] = self.field_name
        return result
