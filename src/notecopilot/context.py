"""The context object handed to every component."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import load_config, resolve_config_path, save_config
from .enrichment.assistant import NoteAssistant
from .graph.builder import KnowledgeGraphBuilder
from .graph.concepts import ConceptExtractor
from .graph.relations import RelationAnalyzer
from .llm.client import GenerationClient
from .llm.log import InteractionLog
from .models import InteractionLogEntry
from .vault.links import LinkWriter
from .vault.store import DocumentStore, VaultDocumentStore
from .vault.writer import VaultWriter


@dataclass
class CopilotContext:
    """Configuration, interaction log, document store and generation client.

    Components receive what they need from here explicitly. The log lives in
    ``config["log_history"]`` and is saved with the rest of the configuration.
    """
    config: dict[str, Any]
    store: DocumentStore
    config_path: Path | None = None
    anthropic_client: Any = None
    log: InteractionLog = field(init=False)
    client: GenerationClient = field(init=False)

    def __post_init__(self):
        self.log = InteractionLog.from_config(self.config, persist=self._persist_log)
        self.client = GenerationClient(self.config, self.log, client=self.anthropic_client)

    @classmethod
    def load(cls, config_path: str | Path | None = None, **kwargs) -> "CopilotContext":
        path = resolve_config_path(config_path)
        config = load_config(path)
        return cls(config=config, store=VaultDocumentStore(config["vault_path"]), config_path=path, **kwargs)

    def save(self) -> None:
        """Persist the full configuration, including the interaction log."""
        if self.config_path is not None:
            save_config(self.config, self.config_path)

    def _persist_log(self, entries: list[InteractionLogEntry]) -> None:
        self.config["log_history"] = [e.to_dict() for e in entries]
        self.save()

    def assistant(self) -> NoteAssistant:
        return NoteAssistant(self.client, self.config)

    def writer(self) -> VaultWriter:
        return VaultWriter(self.store, self.config)

    def link_writer(self) -> LinkWriter:
        return LinkWriter(self.store)

    def graph_builder(self) -> KnowledgeGraphBuilder:
        return KnowledgeGraphBuilder(
            self.store,
            ConceptExtractor(self.client, self.config),
            RelationAnalyzer(self.client, self.config),
            self.config,
            link_writer=self.link_writer(),
        )
