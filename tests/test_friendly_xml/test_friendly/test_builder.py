"""Tests for the friendly view builder and entry/field edits."""

import pytest
from lxml import etree

from friendly_xml.friendly import (
    Collection,
    Entry,
    FriendlyViewBuilder,
    resolve_entry_key,
    to_xml,
    try_build,
    try_duplicate_entry,
    try_set_field,
)
from friendly_xml.shared import FriendlyViewConfig, OperationErrorKind

ITEMS_XML = (
    "<Root><Item><ID>7</ID><Name>Bolt</Name></Item>"
    "<Item><ID>8</ID><Name>Screw</Name></Item></Root>"
)


class TestTryBuild:
    """Test friendly view construction."""

    def test_items_collection(self):
        """Test the basic repeated-record document."""
        document = try_build(ITEMS_XML)

        assert document is not None
        assert [c.title for c in document.collections] == ["Item"]
        entries = document.collections[0].entries
        assert [e.key for e in entries] == ["7", "8"]
        assert [e.display for e in entries] == ["Bolt", "Screw"]
        assert [e.occurrence for e in entries] == [1, 1]
        assert document.primary_collection_key == "Item"
        assert document.entry_count == 2

    def test_repeating_group_under_container(self):
        """Test that a container of repeated children becomes a collection."""
        document = try_build(
            "<Catalog>"
            "<Parts><Part><ID>1</ID></Part><Part><ID>2</ID></Part><Part><ID>3</ID></Part></Parts>"
            "<Settings><Mode>x</Mode></Settings>"
            "</Catalog>"
        )

        assert [c.title for c in document.collections] == ["Parts", "Settings"]
        parts = document.find_collection("parts")
        assert [e.key for e in parts.entries] == ["1", "2", "3"]
        assert document.primary_collection_key == "Parts"

    def test_multiple_groups_get_qualified_titles(self):
        """Test titles of several repeating groups under one container."""
        document = try_build(
            "<R><Lib><Book id='a'/><Book id='b'/><Dvd/><Dvd/></Lib></R>"
        )

        assert [c.title for c in document.collections] == ["Lib/Book", "Lib/Dvd"]
        dvds = document.find_collection("Lib/Dvd").entries
        assert [e.key for e in dvds] == ["Dvd[1]", "Dvd[2]"]
        # Without an identifier the display falls back to the key
        assert dvds[0].display == "Dvd[1]"

    def test_same_titles_merge(self):
        """Test that containers with the same name share one collection."""
        document = try_build("<R><G><I/><I/></G><G><I/><I/></G></R>")

        assert len(document.collections) == 1
        entries = document.collections[0].entries
        assert [e.key for e in entries] == ["I[1]", "I[2]", "I[1]", "I[2]"]
        assert [e.occurrence for e in entries] == [1, 1, 2, 2]

    def test_duplicate_keys_get_occurrences(self):
        """Test occurrence numbering among equal keys."""
        document = try_build("<R><Item><ID>1</ID></Item><Item><ID>1</ID></Item></R>")
        assert [e.occurrence for e in document.collections[0].entries] == [1, 2]

    def test_min_repeat_count(self):
        """Test that the repeat threshold is configurable."""
        xml = "<R><List><A/><A/></List></R>"
        builder = FriendlyViewBuilder(FriendlyViewConfig(min_repeat_count=3))

        document = builder.try_build(xml)
        # Not repeated often enough: the container itself is the entry
        assert [c.title for c in document.collections] == ["List"]

    @pytest.mark.parametrize("xml", [
        "",
        "   \n",
        "<root><a></root>",
        "<root/>",
        "<root>text only</root>",
        "<!DOCTYPE r><r><a/><a/></r>",
    ])
    def test_no_view(self, xml):
        """Test inputs for which no friendly view exists."""
        assert try_build(xml) is None

    def test_entry_fields_are_lazy_and_cached(self):
        """Test that fields are computed once."""
        entry = try_build(ITEMS_XML).collections[0].entries[0]
        fields = entry.fields
        assert entry.fields is fields
        assert entry.get_field("NAME").value == "Bolt"
        assert entry.get_field("missing") is None

    def test_to_xml_preserves_text(self):
        """Test that serialisation keeps the declaration and whitespace."""
        xml = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<R>\n  <I><ID>1</ID></I>\n  <I><ID>2</ID></I>\n</R>"
        )
        assert to_xml(try_build(xml)) == xml


class TestResolveEntryKey:
    """Test entry key fallbacks."""

    def test_positional_fallback(self):
        """Test the Name[index] fallback when nothing identifies the element."""
        element = etree.fromstring("<Row><Inner><X>1</X></Inner></Row>")
        assert resolve_entry_key(element, 4) == "Row[4]"

    def test_id_suffix_child(self):
        """Test the ``*ID`` child fallback for structured ID elements."""
        element = etree.fromstring("<Row><RowID><Part>5</Part></RowID></Row>")
        assert resolve_entry_key(element, 1) == "5"

    def test_identifier_wins(self):
        """Test that the KEY identifier is used first."""
        element = etree.fromstring("<Row><PartID>P-1</PartID><Name>N</Name></Row>")
        assert resolve_entry_key(element, 1) == "P-1"


class TestDuplicateEntry:
    """Test entry duplication."""

    def test_duplicate_keeps_separator(self):
        """Test that the clone sits between source and next sibling with the same separator."""
        xml = "<Root>\n<Item><ID>1</ID></Item>\n<Item><ID>2</ID></Item>\n</Root>"
        document = try_build(xml)
        source = document.collections[0].entries[0]

        result = try_duplicate_entry(document, source)

        assert result.success
        assert to_xml(document) == (
            "<Root>\n<Item><ID>1</ID></Item>\n<Item><ID>1</ID></Item>\n"
            "<Item><ID>2</ID></Item>\n</Root>"
        )
        new_entry = result.value
        assert new_entry.key == "1"
        assert new_entry.occurrence == 2
        assert [e.key for e in document.collections[0].entries] == ["1", "1", "2"]
        assert document.collections[0].entries[1] is new_entry

    def test_duplicate_last_entry_keeps_indentation(self):
        """Test duplicating the last child reuses the sibling indentation."""
        xml = "<Root>\n  <Item><ID>1</ID></Item>\n  <Item><ID>2</ID></Item>\n</Root>"
        document = try_build(xml)
        source = document.collections[0].entries[1]

        assert try_duplicate_entry(document, source).success
        assert to_xml(document) == (
            "<Root>\n  <Item><ID>1</ID></Item>\n  <Item><ID>2</ID></Item>\n"
            "  <Item><ID>2</ID></Item>\n</Root>"
        )

    def test_duplicate_append(self):
        """Test appending the clone ahead of the closing indentation."""
        xml = "<Root>\n  <Item><ID>1</ID></Item>\n  <Item><ID>2</ID></Item>\n</Root>"
        document = try_build(xml)
        source = document.collections[0].entries[0]

        result = try_duplicate_entry(document, source, insert_after=False)

        assert result.success
        assert to_xml(document) == (
            "<Root>\n  <Item><ID>1</ID></Item>\n  <Item><ID>2</ID></Item>\n"
            "  <Item><ID>1</ID></Item>\n</Root>"
        )
        assert [e.key for e in document.collections[0].entries] == ["1", "2", "1"]
        assert result.value.occurrence == 2

    def test_duplicate_compact_document(self):
        """Test duplication without any whitespace between siblings."""
        document = try_build("<R><I><ID>1</ID></I><I><ID>2</ID></I></R>")
        source = document.collections[0].entries[0]

        assert try_duplicate_entry(document, source).success
        assert to_xml(document) == "<R><I><ID>1</ID></I>\n<I><ID>1</ID></I><I><ID>2</ID></I></R>"

    def test_duplicate_last_without_separator(self):
        """Test that a clone after an untailed last child starts on a new line."""
        document = try_build("<R><I><ID>1</ID></I><I><ID>2</ID></I></R>")
        source = document.collections[0].entries[1]

        result = try_duplicate_entry(document, source)

        assert to_xml(document) == "<R><I><ID>1</ID></I><I><ID>2</ID></I>\n<I><ID>2</ID></I></R>"
        assert (result.value.key, result.value.occurrence) == ("2", 2)

    def test_clone_is_independent(self):
        """Test that editing the clone leaves the source untouched."""
        document = try_build(ITEMS_XML)
        source = document.collections[0].entries[0]
        clone = try_duplicate_entry(document, source).value

        assert try_set_field(clone, "Name", "Washer").success
        assert source.get_field("Name").value == "Bolt"
        assert "<Name>Washer</Name>" in to_xml(document)

    def test_missing_document(self):
        """Test the missing-document failure."""
        entry = try_build(ITEMS_XML).collections[0].entries[0]
        result = try_duplicate_entry(None, entry)
        assert not result.success
        assert result.error_kind is OperationErrorKind.INVALID_ARGUMENT

    def test_missing_entry(self):
        """Test the missing-entry failure."""
        result = try_duplicate_entry(try_build(ITEMS_XML), None)
        assert result.error_kind is OperationErrorKind.INVALID_ARGUMENT

    def test_entry_without_parent(self):
        """Test that the root element cannot be duplicated."""
        document = try_build(ITEMS_XML)
        before = to_xml(document)

        result = try_duplicate_entry(document, Entry("root", 1, document.root))

        assert result.error_kind is OperationErrorKind.MISSING_PARENT
        assert result.error
        assert to_xml(document) == before

    def test_entry_from_another_document(self):
        """Test that entries of another tree are refused."""
        document = try_build(ITEMS_XML)
        other = try_build(ITEMS_XML).collections[0].entries[0]

        result = try_duplicate_entry(document, other)

        assert result.error_kind is OperationErrorKind.INVALID_ARGUMENT
        assert document.entry_count == 2


class TestSetField:
    """Test field edits."""

    def test_set_element_field(self):
        """Test editing a leaf element."""
        document = try_build(ITEMS_XML)
        entry = document.collections[0].entries[1]

        result = try_set_field(entry, "name", "Nail")

        assert result.success
        assert "<Name>Nail</Name>" in to_xml(document)
        assert entry.get_field("Name").value == "Nail"

    def test_set_attribute_field(self):
        """Test editing an attribute."""
        document = try_build("<R><I id='1'/><I id='2'/></R>")
        entry = document.collections[0].entries[0]

        assert try_set_field(entry, "@id", "9").success
        assert entry.element.get("id") == "9"

    def test_none_clears_value(self):
        """Test that None writes an empty value."""
        document = try_build(ITEMS_XML)
        entry = document.collections[0].entries[0]

        assert try_set_field(entry, "Name", None).success
        assert (entry.element.find("Name").text or "") == ""
        assert entry.get_field("Name").value == ""

    def test_missing_field(self):
        """Test the field-not-found failure."""
        entry = try_build(ITEMS_XML).collections[0].entries[0]

        result = try_set_field(entry, "Nope", "x")

        assert result.error_kind is OperationErrorKind.FIELD_NOT_FOUND
        assert result.error == "Field 'Nope' was not found."

    def test_missing_entry(self):
        """Test the missing-entry failure."""
        assert try_set_field(None, "Name", "x").error_kind is OperationErrorKind.INVALID_ARGUMENT

    def test_field_no_longer_a_leaf(self):
        """Test that a field whose element gained children is refused."""
        entry = try_build(ITEMS_XML).collections[0].entries[0]
        entry.fields  # flatten before the structure changes
        etree.SubElement(entry.element.find("Name"), "Part")

        result = try_set_field(entry, "Name", "x")

        assert result.error_kind is OperationErrorKind.FIELD_NOT_UPDATABLE

    def test_invalid_characters(self):
        """Test that values XML cannot hold are refused."""
        entry = try_build(ITEMS_XML).collections[0].entries[0]

        result = try_set_field(entry, "Name", "bad\x01value")

        assert result.error_kind is OperationErrorKind.FIELD_NOT_UPDATABLE
        assert entry.get_field("Name").value == "Bolt"


class TestCollection:
    """Test occurrence numbering inside a collection."""

    def test_add_numbers_repeated_keys(self):
        """Test that appended entries count earlier entries with the same key."""
        collection = Collection("Item")
        element = etree.Element("Item")

        entries = [collection.add(key, element) for key in ["a", "b", "a", "a", "b"]]

        assert [e.occurrence for e in entries] == [1, 1, 2, 3, 2]

    def test_insert_counts_only_preceding_entries(self):
        """Test that an inserted entry is numbered by its position."""
        element = etree.Element("Item")
        collection = Collection("Item")
        for key in ["a", "b", "a"]:
            collection.add(key, element)

        inserted = collection.insert(1, "a", element)
        appended = collection.add("a", element)

        assert inserted.occurrence == 2
        assert appended.occurrence == 4
        assert [e.key for e in collection.entries] == ["a", "a", "b", "a", "a"]

    def test_existing_entries_seed_the_counts(self):
        """Test a collection created from existing entries."""
        element = etree.Element("Item")
        collection = Collection("Item", [Entry("a", 1, element), Entry("a", 2, element)])
        assert collection.add("a", element).occurrence == 3

    def test_large_collection_occurrences(self):
        """Test numbering across a large generated document."""
        items = "".join(f"<Item><ID>{i % 100}</ID></Item>" for i in range(5000))
        document = try_build(f"<Root>{items}</Root>")

        entries = document.collections[0].entries
        assert len(entries) == 5000
        assert (entries[0].key, entries[0].occurrence) == ("0", 1)
        assert (entries[-1].key, entries[-1].occurrence) == ("99", 50)
