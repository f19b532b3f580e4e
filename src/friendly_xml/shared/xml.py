"""lxml helpers shared by the friendly view builder and diagnostics.

Elements are always addressed by local name; namespaces are ignored.
"""

import re
from typing import List, Optional

from lxml import etree

from .errors import FriendlyXmlError
from .text import local_name

_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml\b[^>]*\?>[ \t]*(?:\r\n|\r|\n)?")


class DoctypeProhibitedError(FriendlyXmlError, ValueError):
    """Raised when a document carries a DOCTYPE and DTDs are prohibited."""

    def __init__(
        self, message: str = "For security reasons DTD is prohibited in this XML document."
    ) -> None:
        super().__init__(message)


def create_parser(remove_blank_text: bool = False) -> etree.XMLParser:
    """Create a parser that never loads DTDs, resolves entities or hits the network."""
    return etree.XMLParser(
        encoding="utf-8",
        remove_blank_text=remove_blank_text,
        resolve_entities=False,
        load_dtd=False,
        no_network=True,
        strip_cdata=False,
        huge_tree=False,
    )


def parse_tree(
    xml_text: str,
    prohibit_dtd: bool = True,
    remove_blank_text: bool = False,
) -> etree._ElementTree:
    """Parse ``xml_text`` into an lxml tree, keeping whitespace by default.

    Raises:
        etree.XMLSyntaxError: The text is not well-formed
        DoctypeProhibitedError: The text has a DOCTYPE and ``prohibit_dtd`` is set
    """
    root = etree.fromstring(
        xml_text.encode("utf-8"), create_parser(remove_blank_text=remove_blank_text)
    )
    tree = root.getroottree()
    if prohibit_dtd and tree.docinfo.doctype:
        raise DoctypeProhibitedError()
    return tree


def xml_declaration(xml_text: str) -> str:
    """Return the leading XML declaration (with its line break) or ``""``."""
    match = _DECLARATION_RE.match(xml_text)
    return match.group(0).lstrip("\ufeff \t\r\n") if match else ""


def is_element(node: object) -> bool:
    """Check if an lxml node is an element (not a comment, PI or entity)."""
    return isinstance(getattr(node, "tag", None), str)


def child_elements(element: etree._Element) -> List[etree._Element]:
    """Return the direct child elements of ``element`` in document order."""
    return [child for child in element if is_element(child)]


def has_child_elements(element: etree._Element) -> bool:
    """Check if ``element`` has at least one child element."""
    return any(is_element(child) for child in element)


def element_name(element: etree._Element) -> str:
    """Return the local name of an element."""
    return local_name(element.tag)


def element_value(element: etree._Element) -> str:
    """Return the concatenated character content of ``element``.

    Comment and processing-instruction content is skipped; their tails count.
    """
    parts = [element.text or ""]
    for child in element:
        if is_element(child):
            parts.append(element_value(child))
        parts.append(child.tail or "")
    return "".join(parts)


def set_element_value(element: etree._Element, value: str) -> None:
    """Replace all content of a leaf element with ``value``."""
    for child in list(element):
        element.remove(child)
    element.text = value


def next_sibling_element(element: etree._Element) -> Optional[etree._Element]:
    """Return the node following ``element`` if it is an element."""
    following = element.getnext()
    return following if is_element(following) else None
