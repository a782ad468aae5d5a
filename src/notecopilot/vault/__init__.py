"""Vault access: document store, link sections and note edits."""

from .links import RELATED_SECTION_HEADING, LinkWriter, add_wikilink, append_links
from .store import DocumentStore, VaultDocumentStore
from .writer import VaultWriter

__all__ = [
    "RELATED_SECTION_HEADING",
    "LinkWriter",
    "add_wikilink",
    "append_links",
    "DocumentStore",
    "VaultDocumentStore",
    "VaultWriter",
]
