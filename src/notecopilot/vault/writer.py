"""Apply confirmed assistant output to vault documents."""

import re
from datetime import date
from pathlib import PurePosixPath
from typing import Any

from ..models import DocumentRef
from .store import DocumentStore

_INVALID_FILENAME_CHARS = re.compile(r'[*"\\/<>:|?]')
_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}\s*[:\-]\s*")


def sanitize_filename(name: str) -> str:
    """Sanitize a string for use as a filename."""
    name = _INVALID_FILENAME_CHARS.sub("_", name)
    name = re.sub(r"\s+", " ", name).strip(". ")
    return name[:100] if name else "untitled"


def clean_suggested_title(text: str) -> str:
    """Reduce a model's title suggestion to the bare title.

    Takes the first non-empty line and drops heading marks, a leading
    ``YYYY-MM-DD:`` date and surrounding quotes.
    """
    line = next((ln.strip() for ln in text.splitlines() if ln.strip()), "")
    line = line.lstrip("#").strip()
    line = _DATE_PREFIX.sub("", line)
    return line.strip().strip("\"'`*").strip()


class VaultWriter:
    """Renames, creates and edits notes on behalf of the assistant commands."""

    def __init__(self, store: DocumentStore, config: dict[str, Any] | None = None):
        self.store = store
        self.config = config or {}

    @staticmethod
    def dated_filename(title: str, today: date | None = None) -> str:
        today = today or date.today()
        return f"{today.isoformat()} - {sanitize_filename(title)}"

    def rename_with_title(self, ref: DocumentRef, title: str, today: date | None = None) -> DocumentRef:
        """Rename ``ref`` to ``<today> - <title>`` in its current folder."""
        return self.store.rename(ref, self.dated_filename(title, today))

    def new_note_folder(self, active_folder: str | None = None) -> str:
        """Folder for new notes, per ``default_new_file_location``.

        ``root`` is the vault root, ``current`` the active note's folder (root
        when there is none), anything else a vault-relative folder.
        """
        location = (self.config.get("default_new_file_location") or "root").strip()
        if location == "root":
            return ""
        if location == "current":
            return active_folder or ""
        return location.strip("/")

    def create_note(
        self,
        title: str,
        content: str,
        active_folder: str | None = None,
        today: date | None = None,
    ) -> DocumentRef:
        """Create a new note named after ``title`` holding ``content``."""
        folder = self.new_note_folder(active_folder)
        base = self.dated_filename(title, today)
        path = str(PurePosixPath(folder) / f"{base}.md")

        # Handle name collisions
        existing = {ref.path for ref in self.store.list_documents()}
        counter = 1
        while path in existing:
            path = str(PurePosixPath(folder) / f"{base}_{counter}.md")
            counter += 1

        return self.store.create(path, content)

    def prepend_hashtags(self, ref: DocumentRef, hashtags: str) -> str:
        """Put ``hashtags`` on the first line of the note. Returns the new body."""
        body = self.store.read_body(ref)
        new_body = f"{hashtags.strip()}\n{body}"
        self.store.write_body(ref, new_body)
        return new_body

    def replace_selection(self, ref: DocumentRef, selection: str, replacement: str) -> str:
        """Replace the first occurrence of ``selection`` in the note."""
        body = self.store.read_body(ref)
        if not selection or selection not in body:
            raise ValueError(f"Selected text not found in {ref.path}")
        new_body = body.replace(selection, replacement, 1)
        self.store.write_body(ref, new_body)
        return new_body
