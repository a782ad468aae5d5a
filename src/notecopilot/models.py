"""Data models used throughout note-copilot."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class DocumentRef:
    """A markdown document in the vault."""
    path: str  # vault-relative, POSIX separators
    name: str  # file stem, used as the wikilink target
    folder: str = ""  # vault-relative parent, "" for the vault root


@dataclass(frozen=True)
class DocumentRelation:
    """A scored, directional similarity judgement between two documents."""
    source: DocumentRef
    target: DocumentRef
    similarity_score: float
    context: str = ""


@dataclass
class InteractionLogEntry:
    """One request/response exchange with the generation service."""
    model: str
    input_prompt: str
    output_response: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    error: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InteractionLogEntry":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        known.setdefault("model", "")
        known.setdefault("input_prompt", "")
        return cls(**known)


@dataclass
class CustomPrompt:
    """A user-defined prompt run against a text selection."""
    name: str
    prompt: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description, "prompt": self.prompt}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomPrompt":
        return cls(
            name=str(data.get("name", "")),
            prompt=str(data.get("prompt", "")),
            description=str(data.get("description", "")),
        )
