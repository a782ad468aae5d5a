"""Document store interface and the on-disk vault implementation."""

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

from ..errors import DocumentIOError
from ..models import DocumentRef


def make_ref(path: str) -> DocumentRef:
    """Build a DocumentRef from a vault-relative path."""
    p = PurePosixPath(path)
    folder = str(p.parent)
    return DocumentRef(path=str(p), name=p.stem, folder="" if folder == "." else folder)


class DocumentStore(ABC):
    """The only view of the vault the core depends on."""

    @abstractmethod
    def list_documents(self) -> list[DocumentRef]:
        """All documents, in a stable enumeration order."""

    @abstractmethod
    def read_body(self, ref: DocumentRef) -> str:
        """Return the document text. Raises DocumentIOError if unreadable."""

    @abstractmethod
    def write_body(self, ref: DocumentRef, text: str) -> None:
        """Replace the document text. Raises DocumentIOError if unwritable."""

    @abstractmethod
    def rename(self, ref: DocumentRef, new_name: str) -> DocumentRef:
        """Rename a document within its folder. ``new_name`` excludes the extension."""

    @abstractmethod
    def create(self, path: str, text: str) -> DocumentRef:
        """Create a new document at a vault-relative path."""

    def get(self, path: str) -> DocumentRef:
        """Look up a document by vault-relative path."""
        wanted = str(PurePosixPath(path))
        for ref in self.list_documents():
            if ref.path == wanted:
                return ref
        raise DocumentIOError(path, "no such document in the vault")


class VaultDocumentStore(DocumentStore):
    """Markdown files under a vault directory."""

    def __init__(self, vault_path: str | Path):
        self.vault_path = Path(vault_path)

    def _abs(self, ref_or_path: DocumentRef | str) -> Path:
        rel = ref_or_path.path if isinstance(ref_or_path, DocumentRef) else ref_or_path
        return self.vault_path / rel

    def list_documents(self) -> list[DocumentRef]:
        if not self.vault_path.exists():
            return []

        refs = []
        for md_file in sorted(self.vault_path.rglob("*.md")):
            rel = md_file.relative_to(self.vault_path)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if md_file.is_file():
                refs.append(make_ref(rel.as_posix()))
        return refs

    def read_body(self, ref: DocumentRef) -> str:
        try:
            return self._abs(ref).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentIOError(ref.path, str(e)) from e

    def write_body(self, ref: DocumentRef, text: str) -> None:
        try:
            self._abs(ref).write_text(text, encoding="utf-8")
        except OSError as e:
            raise DocumentIOError(ref.path, str(e)) from e

    def rename(self, ref: DocumentRef, new_name: str) -> DocumentRef:
        src = self._abs(ref)
        new_path = str(PurePosixPath(ref.folder) / f"{new_name}{src.suffix or '.md'}")
        dst = self._abs(new_path)
        if dst.exists() and dst != src:
            raise DocumentIOError(new_path, "a document with that name already exists")
        try:
            src.rename(dst)
        except OSError as e:
            raise DocumentIOError(ref.path, str(e)) from e
        return make_ref(new_path)

    def create(self, path: str, text: str) -> DocumentRef:
        target = self._abs(path)
        if target.exists():
            raise DocumentIOError(path, "a document with that name already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            raise DocumentIOError(path, str(e)) from e
        return make_ref(str(PurePosixPath(path)))
