"""Insert "Related Documents" wikilink sections into vault documents."""

import logging
import re
from typing import Iterable

from ..models import DocumentRef, DocumentRelation
from .store import DocumentStore

logger = logging.getLogger(__name__)

RELATED_SECTION_HEADING = "## Related Documents"


def format_link_line(target_name: str, context: str = "") -> str:
    """One bullet line linking to ``target_name``."""
    context = " ".join(context.split())
    if context:
        return f"- [[{target_name}]] - {context}"
    return f"- [[{target_name}]]"


def _heading_pattern(heading: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(heading)}[ \t]*$", re.MULTILINE)


def _section_pattern(heading: str) -> re.Pattern:
    # From the heading line to the next markdown heading or end of text
    return re.compile(
        rf"^{re.escape(heading)}[ \t]*$(.*?)(?=\n#{{1,6}}[ \t]|\Z)",
        re.MULTILINE | re.DOTALL,
    )


def has_related_section(body: str, heading: str = RELATED_SECTION_HEADING) -> bool:
    return bool(_heading_pattern(heading).search(body))


def _append_section(body: str, heading: str, lines: list[str]) -> str:
    base = body.rstrip("\n")
    prefix = f"{base}\n\n" if base.strip() else ""
    return prefix + heading + "\n" + "\n".join(lines) + "\n"


def append_links(
    body: str,
    relations: Iterable[DocumentRelation],
    heading: str = RELATED_SECTION_HEADING,
) -> str:
    """Append a related-documents section listing ``relations`` in order.

    Returns ``body`` unchanged when there is nothing to add or the section
    already exists; existing sections are never merged into.
    """
    relations = list(relations)
    if not relations:
        return body
    if has_related_section(body, heading):
        return body

    lines = [format_link_line(r.target.name, r.context) for r in relations]
    return _append_section(body, heading, lines)


def add_wikilink(
    body: str,
    target_name: str,
    context: str = "",
    heading: str = RELATED_SECTION_HEADING,
) -> tuple[str, bool]:
    """Add a single link to ``target_name`` inside the related-documents section.

    Returns the new body and whether a link was added. A link that already
    appears in the section is not added again.
    """
    line = format_link_line(target_name, context)
    match = _section_pattern(heading).search(body)
    if match is None:
        return _append_section(body, heading, [line]), True

    section = match.group(1)
    if f"[[{target_name}]]" in section:
        return body, False

    stripped = section.rstrip()
    trailing = section[len(stripped):]
    new_section = f"{stripped}\n{line}{trailing}"
    return body[:match.start(1)] + new_section + body[match.end(1):], True


class LinkWriter:
    """Applies related-document links to documents in a store."""

    def __init__(self, store: DocumentStore, heading: str = RELATED_SECTION_HEADING):
        self.store = store
        self.heading = heading

    def apply(self, relations: Iterable[DocumentRelation]) -> list[DocumentRef]:
        """Append a links section to every source document in ``relations``.

        Returns the documents that were modified. A failure on one document is
        logged and does not stop the others.
        """
        by_source: dict[DocumentRef, list[DocumentRelation]] = {}
        for relation in relations:
            by_source.setdefault(relation.source, []).append(relation)

        modified = []
        for source, source_relations in by_source.items():
            try:
                body = self.store.read_body(source)
                new_body = append_links(body, source_relations, self.heading)
                if new_body == body:
                    logger.debug(f"Links already present or nothing to add: {source.path}")
                    continue
                self.store.write_body(source, new_body)
                modified.append(source)
                logger.info(f"Added {len(source_relations)} link(s) to {source.path}")
            except Exception as e:
                logger.error(f"Failed to add links to {source.path}: {e}")
        return modified

    def add_link(self, document: DocumentRef, relation: DocumentRelation) -> bool:
        """Link ``document`` to ``relation.target``. Returns False if already linked."""
        body = self.store.read_body(document)
        new_body, added = add_wikilink(body, relation.target.name, relation.context, self.heading)
        if added:
            self.store.write_body(document, new_body)
        return added
