"""Field flattening for friendly view entries.

An entry element is flattened into a path -> ``Field`` map. Paths look like
``Name``, ``Address/City``, ``Items/Item[2]/@id``. Each ``Field`` stays bound
to the live lxml node it was read from, so editing a field edits the document.
"""

from typing import Dict, Optional

from lxml import etree

from friendly_xml.shared.text import CaseInsensitiveDict, local_name
from friendly_xml.shared.xml import (
    child_elements,
    element_name,
    element_value,
    has_child_elements,
    set_element_value,
)


class Field:
    """One flattened leaf value, bound to an attribute or a leaf element."""

    __slots__ = ("key", "value", "element", "attribute")

    def __init__(
        self,
        key: str,
        value: str,
        element: etree._Element,
        attribute: Optional[str] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.element = element
        # Qualified attribute name as lxml stores it, e.g. "{urn:x}id"
        self.attribute = attribute

    @property
    def is_attribute(self) -> bool:
        return self.attribute is not None

    @property
    def name(self) -> str:
        """Last path segment of the key, e.g. ``@id`` or ``City``."""
        return self.key.rsplit("/", 1)[-1]

    @property
    def is_updatable(self) -> bool:
        """Check if the bound node can still take a plain value."""
        if self.is_attribute:
            return True
        return not has_child_elements(self.element)

    def write(self, new_value: str) -> None:
        """Write ``new_value`` through to the bound node and cache it."""
        if self.attribute is not None:
            self.element.set(self.attribute, new_value)
        else:
            set_element_value(self.element, new_value)
        self.value = new_value

    def __repr__(self) -> str:
        return f"Field(key={self.key!r}, value={self.value!r})"


def flatten_fields(element: etree._Element) -> "CaseInsensitiveDict[Field]":
    """Flatten ``element`` into a case-insensitive path -> Field map."""
    fields: CaseInsensitiveDict[Field] = CaseInsensitiveDict()
    _walk(element, "", fields)
    return fields


def _add(fields: "CaseInsensitiveDict[Field]", field: Field) -> None:
    if field.key not in fields:
        fields[field.key] = field
        return

    # Only reachable for attributes whose names differ just by case.
    index = 2
    while f"{field.key} ({index})" in fields:
        index += 1
    field.key = f"{field.key} ({index})"
    fields[field.key] = field


def _walk(element: etree._Element, prefix: str, fields: "CaseInsensitiveDict[Field]") -> None:
    for attr_name, attr_value in element.attrib.items():
        name = "@" + local_name(attr_name)
        key = f"{prefix}/{name}" if prefix else name
        _add(fields, Field(key, attr_value, element, attribute=attr_name))

    children = child_elements(element)
    if not children:
        key = prefix or element_name(element)
        _add(fields, Field(key, element_value(element), element))
        return

    counts: Dict[str, int] = {}
    for child in children:
        folded = element_name(child).casefold()
        counts[folded] = counts.get(folded, 0) + 1

    seen: Dict[str, int] = {}
    for child in children:
        name = element_name(child)
        folded = name.casefold()
        if counts[folded] > 1:
            seen[folded] = seen.get(folded, 0) + 1
            segment = f"{name}[{seen[folded]}]"
        else:
            segment = name
        _walk(child, f"{prefix}/{segment}" if prefix else segment, fields)

