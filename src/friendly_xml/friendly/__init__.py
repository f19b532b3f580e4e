"""Friendly (flattened, schema-less) views over XML documents.

Key Components:
    FriendlyViewBuilder: Detects repeating collections and applies entry/field edits
    Entry / Collection / FriendlyDocument: Views over the live lxml tree
    Field / flatten_fields: Path-keyed leaf values of one element
    resolve_identifier: Ranked-rule identifier resolution for labels and keys
"""

from .builder import (
    Collection,
    Entry,
    FriendlyDocument,
    FriendlyViewBuilder,
    resolve_entry_key,
    to_xml,
    try_build,
    try_duplicate_entry,
    try_set_field,
)
from .fields import Field, flatten_fields
from .identifiers import (
    Candidate,
    IdentifierMode,
    gather_candidates,
    name_priority,
    pick_best,
    resolve_identifier,
    score_candidate,
)

__all__ = [
    "Collection",
    "Entry",
    "FriendlyDocument",
    "FriendlyViewBuilder",
    "resolve_entry_key",
    "to_xml",
    "try_build",
    "try_duplicate_entry",
    "try_set_field",
    "Field",
    "flatten_fields",
    "Candidate",
    "IdentifierMode",
    "gather_candidates",
    "name_priority",
    "pick_best",
    "resolve_identifier",
    "score_candidate",
]
