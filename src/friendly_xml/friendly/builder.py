"""Friendly view construction and in-place editing.

This module turns a schema-less XML document into collections of entries that
a UI can list, label and edit. Entries and fields are views over the live lxml
tree: nothing is copied, and every edit lands in the document that
``to_xml`` serialises.
"""

import copy
import time
from typing import Dict, List, Optional, Tuple

from lxml import etree

from friendly_xml.shared import (
    FriendlyViewConfig,
    OperationErrorKind,
    OperationResult,
    get_logger,
)
from friendly_xml.shared.xml import (
    DoctypeProhibitedError,
    child_elements,
    element_name,
    element_value,
    next_sibling_element,
    parse_tree,
    xml_declaration,
)

from .fields import Field, flatten_fields
from .identifiers import IdentifierMode, resolve_identifier

NEWLINE = "\n"


class Entry:
    """One record of a collection, backed by a live element.

    ``display`` and ``fields`` are computed on first access and cached; the
    key and occurrence are fixed when the entry is built.
    """

    def __init__(self, key: str, occurrence: int, element: etree._Element) -> None:
        self.key = key
        self.occurrence = occurrence
        self.element = element
        self._display: Optional[str] = None
        self._fields = None

    @property
    def name(self) -> str:
        """Local name of the backing element."""
        return element_name(self.element)

    @property
    def display(self) -> str:
        if self._display is None:
            resolved = resolve_identifier(self.element, IdentifierMode.DISPLAY)
            self._display = resolved if resolved is not None else self.key
        return self._display

    @property
    def fields(self):
        """Case-insensitive path -> Field map of this entry."""
        if self._fields is None:
            self._fields = flatten_fields(self.element)
        return self._fields

    def get_field(self, field_path: str) -> Optional[Field]:
        return self.fields.get(field_path)

    def __repr__(self) -> str:
        return f"Entry(key={self.key!r}, occurrence={self.occurrence})"


class Collection:
    """Titled, ordered list of entries."""

    def __init__(self, title: str, entries: Optional[List[Entry]] = None) -> None:
        self.title = title
        self.entries: List[Entry] = entries if entries is not None else []
        self._key_counts: Dict[str, int] = {}
        for entry in self.entries:
            self._count(entry.key)

    def _count(self, key: str) -> None:
        self._key_counts[key] = self._key_counts.get(key, 0) + 1

    def add(self, key: str, element: etree._Element) -> Entry:
        """Append an entry, numbering it among entries with the same key."""
        self._count(key)
        entry = Entry(key, self._key_counts[key], element)
        self.entries.append(entry)
        return entry

    def insert(self, index: int, key: str, element: etree._Element) -> Entry:
        """Insert an entry at ``index``; its occurrence counts same-keyed entries before it."""
        if index >= len(self.entries):
            return self.add(key, element)

        occurrence = 1 + sum(1 for e in self.entries[:index] if e.key == key)
        self._count(key)
        entry = Entry(key, occurrence, element)
        self.entries.insert(index, entry)
        return entry

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Collection(title={self.title!r}, entries={len(self.entries)})"


class FriendlyDocument:
    """Friendly view over a parsed document."""

    def __init__(
        self,
        tree: etree._ElementTree,
        collections: List[Collection],
        primary_collection_key: str,
        declaration: str = "",
    ) -> None:
        self.tree = tree
        self.collections = collections
        self.primary_collection_key = primary_collection_key
        self.declaration = declaration

    @property
    def root(self) -> etree._Element:
        return self.tree.getroot()

    @property
    def entry_count(self) -> int:
        return sum(len(collection) for collection in self.collections)

    def find_collection(self, title: str) -> Optional[Collection]:
        """Find a collection by title (case-insensitive)."""
        folded = title.casefold()
        for collection in self.collections:
            if collection.title.casefold() == folded:
                return collection
        return None

    def collection_of(self, entry: Entry) -> Optional[Collection]:
        """Return the collection holding ``entry``, if any."""
        for collection in self.collections:
            if any(candidate is entry for candidate in collection.entries):
                return collection
        return None


class FriendlyViewBuilder:
    """Builds friendly documents and applies entry/field edits.

    Examples:
        >>> builder = FriendlyViewBuilder()
        >>> doc = builder.try_build(
        ...     "<Root><Item><ID>7</ID><Name>Bolt</Name></Item>"
        ...     "<Item><ID>8</ID><Name>Screw</Name></Item></Root>")
        >>> [(e.key, e.display) for e in doc.collections[0].entries]
        [('7', 'Bolt'), ('8', 'Screw')]
    """

    def __init__(
        self,
        config: Optional[FriendlyViewConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FriendlyViewConfig()
        self.logger = get_logger(__name__, correlation_id, "friendly_view")

    def try_build(self, xml_text: str) -> Optional[FriendlyDocument]:
        """Build a friendly view, or return None when none can be derived."""
        if not xml_text or not xml_text.strip():
            return None

        start_time = time.time()
        try:
            tree = parse_tree(xml_text, prohibit_dtd=self.config.prohibit_dtd)
        except DoctypeProhibitedError:
            self.logger.warning("Friendly view refused: document has a DOCTYPE")
            return None
        except etree.XMLSyntaxError as e:
            self.logger.debug("Friendly view skipped: XML not well-formed",
                              extra={"error": str(e)})
            return None

        root = tree.getroot()
        root_children = child_elements(root)
        if not root_children:
            return None

        collections: Dict[str, Collection] = {}
        direct_entries: List[etree._Element] = []

        for child in root_children:
            groups = self._repeating_groups(child)
            if not groups:
                direct_entries.append(child)
                continue

            parent_name = element_name(child)
            for group_name, members in groups:
                title = parent_name if len(groups) == 1 else f"{parent_name}/{group_name}"
                self._add_entries(collections, title, members)

        for name, members in _group_by_name(direct_entries):
            self._add_entries(collections, name, members)

        if not collections:
            return None

        ordered = list(collections.values())
        primary = max(ordered, key=len).title

        self.logger.debug(
            "Friendly view built",
            extra={
                "collections": len(ordered),
                "primary_collection": primary,
                "processing_time_ms": (time.time() - start_time) * 1000,
            },
        )
        return FriendlyDocument(tree, ordered, primary, xml_declaration(xml_text))

    def _repeating_groups(
        self, element: etree._Element
    ) -> List[Tuple[str, List[etree._Element]]]:
        grandchildren = child_elements(element)
        if len(grandchildren) < 2:
            return []
        return [
            (name, members)
            for name, members in _group_by_name(grandchildren)
            if len(members) >= self.config.min_repeat_count
        ]

    def _add_entries(
        self,
        collections: Dict[str, Collection],
        title: str,
        members: List[etree._Element],
    ) -> None:
        collection = collections.get(title.casefold())
        if collection is None:
            collection = collections[title.casefold()] = Collection(title)

        for index, element in enumerate(members, start=1):
            collection.add(resolve_entry_key(element, index), element)

    def try_duplicate_entry(
        self,
        document: Optional[FriendlyDocument],
        source_entry: Optional[Entry],
        insert_after: bool = True,
    ) -> OperationResult[Entry]:
        """Clone an entry's element into the document and return the new entry.

        With ``insert_after`` the clone goes right after the source, reusing
        the whitespace that separates the source from its next sibling.
        Otherwise it is appended to the parent, ahead of the parent's closing
        indentation.
        """
        if document is None:
            return OperationResult.fail(
                OperationErrorKind.INVALID_ARGUMENT, "No friendly document is loaded."
            )
        if source_entry is None or source_entry.element is None:
            return OperationResult.fail(
                OperationErrorKind.INVALID_ARGUMENT, "No source entry was given."
            )

        source = source_entry.element
        parent = source.getparent()
        if parent is None:
            return OperationResult.fail(
                OperationErrorKind.MISSING_PARENT,
                f"Entry '{source_entry.key}' has no parent element and cannot be duplicated.",
            )
        if source.getroottree().getroot() is not document.root:
            return OperationResult.fail(
                OperationErrorKind.INVALID_ARGUMENT,
                f"Entry '{source_entry.key}' does not belong to this document.",
            )

        clone = copy.deepcopy(source)
        clone.tail = None

        if insert_after:
            _insert_after(parent, source, clone)
        else:
            _append_before_trailing_whitespace(parent, clone)

        name = element_name(clone).casefold()
        same_named = [c for c in child_elements(parent) if element_name(c).casefold() == name]
        position = next(i for i, c in enumerate(same_named, start=1) if c is clone)
        key = resolve_entry_key(clone, position)

        collection = document.collection_of(source_entry)
        if collection is None:
            new_entry = Entry(key, 1, clone)
        else:
            if insert_after:
                at = next(
                    i for i, e in enumerate(collection.entries) if e is source_entry
                ) + 1
            else:
                at = len(collection.entries)
            new_entry = collection.insert(at, key, clone)

        self.logger.debug(
            "Entry duplicated",
            extra={"source_key": source_entry.key, "new_key": key,
                   "insert_after": insert_after},
        )
        return OperationResult.ok(new_entry)

    def try_set_field(
        self,
        entry: Optional[Entry],
        field_path: str,
        new_value: Optional[str],
    ) -> OperationResult[None]:
        """Write ``new_value`` to the attribute or leaf element behind a field."""
        if entry is None:
            return OperationResult.fail(
                OperationErrorKind.INVALID_ARGUMENT, "No entry was given."
            )

        field = entry.get_field(field_path or "")
        if field is None:
            return OperationResult.fail(
                OperationErrorKind.FIELD_NOT_FOUND, f"Field '{field_path}' was not found."
            )
        if not field.is_updatable:
            return OperationResult.fail(
                OperationErrorKind.FIELD_NOT_UPDATABLE,
                f"Field '{field_path}' no longer maps to an attribute or leaf element.",
            )

        try:
            field.write(new_value if new_value is not None else "")
        except ValueError as e:
            # lxml rejects control characters that XML cannot represent
            return OperationResult.fail(
                OperationErrorKind.FIELD_NOT_UPDATABLE,
                f"Field '{field_path}' cannot hold this value: {e}",
            )
        return OperationResult.ok()

    def to_xml(self, document: FriendlyDocument) -> str:
        """Serialise the live tree without reformatting it."""
        return document.declaration + etree.tostring(document.tree, encoding="unicode")


def resolve_entry_key(element: etree._Element, index: int) -> str:
    """Resolve an entry key: identifier, then an ``*ID`` child, then ``Name[index]``."""
    key = resolve_identifier(element, IdentifierMode.KEY)
    if key:
        return key

    for child in child_elements(element):
        if element_name(child).upper().endswith("ID"):
            value = element_value(child).strip()
            if value:
                return value

    return f"{element_name(element)}[{index}]"


def _group_by_name(
    elements: List[etree._Element],
) -> List[Tuple[str, List[etree._Element]]]:
    """Group elements by case-insensitive local name, in first-seen order."""
    groups: Dict[str, Tuple[str, List[etree._Element]]] = {}
    for element in elements:
        name = element_name(element)
        groups.setdefault(name.casefold(), (name, []))[1].append(element)
    return list(groups.values())


def _is_blank(text: Optional[str]) -> bool:
    return bool(text) and not text.strip()


def _sibling_separator(parent: etree._Element, element: etree._Element) -> str:
    """Whitespace that precedes ``element``, or a newline when there is none."""
    previous = element.getprevious()
    separator = previous.tail if previous is not None else parent.text
    return separator if _is_blank(separator) else NEWLINE


def _insert_after(
    parent: etree._Element, source: etree._Element, clone: etree._Element
) -> None:
    separator = source.tail
    following = next_sibling_element(source)

    if not separator:
        # No separator to reuse: start the clone on its own line.
        source.tail = NEWLINE
        clone.tail = None
    else:
        # The clone takes over whatever followed the source.
        clone.tail = separator
        if not _is_blank(separator):
            # Mixed content stays attached after the clone.
            source.tail = NEWLINE
        elif following is None:
            # Last child: its tail is the parent's closing indentation.
            source.tail = _sibling_separator(parent, source)

    parent.insert(parent.index(source) + 1, clone)


def _append_before_trailing_whitespace(
    parent: etree._Element, clone: etree._Element
) -> None:
    nodes = list(parent)
    if nodes:
        last = nodes[-1]
        if _is_blank(last.tail):
            clone.tail = last.tail
            last.tail = _sibling_separator(parent, last)

    parent.append(clone)


_default_builder = FriendlyViewBuilder()


def try_build(xml_text: str) -> Optional[FriendlyDocument]:
    """Build a friendly view with the default configuration."""
    return _default_builder.try_build(xml_text)


def try_duplicate_entry(
    document: Optional[FriendlyDocument],
    source_entry: Optional[Entry],
    insert_after: bool = True,
) -> OperationResult[Entry]:
    """Duplicate an entry using the default builder."""
    return _default_builder.try_duplicate_entry(document, source_entry, insert_after)


def try_set_field(
    entry: Optional[Entry], field_path: str, new_value: Optional[str]
) -> OperationResult[None]:
    """Edit a field using the default builder."""
    return _default_builder.try_set_field(entry, field_path, new_value)


def to_xml(document: FriendlyDocument) -> str:
    """Serialise a friendly document's live tree."""
    return _default_builder.to_xml(document)
