"""Configuration management for note-copilot."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .llm.prompts import DEFAULT_PROMPT_TEMPLATES


DEFAULT_CONFIG = {
    "vault_path": "~/.notecopilot/vault",
    "claude_api_key": "",
    "claude_model": "claude-sonnet-4-20250514",
    "max_tokens": 1000,
    "default_new_file_location": "root",
    "custom_prompts": [],
    "knowledge_graph": {
        "enabled": True,
        "min_similarity_score": 0.5,
        "max_links_per_document": 5,
        "auto_add_links": False,
    },
    "prompt_templates": dict(DEFAULT_PROMPT_TEMPLATES),
    "log_history": [],
}

DEFAULT_CONFIG_PATH = Path.home() / ".notecopilot" / "config.yaml"


def find_config_file() -> Path | None:
    """Look for config.yaml in standard locations."""
    candidates = [
        Path.cwd() / "config" / "config.yaml",
        Path.cwd() / "config.yaml",
        DEFAULT_CONFIG_PATH,
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    """Path the config is read from and saved to."""
    if config_path:
        return Path(config_path).expanduser()
    return find_config_file() or DEFAULT_CONFIG_PATH


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars.

    Values from the file win over the defaults.
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = resolve_config_path(config_path)
    if path.exists():
        with open(path, encoding="utf-8") as f:
            file_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, file_cfg)

    # Env overrides
    if api_key := os.environ.get("ANTHROPIC_API_KEY"):
        cfg["claude_api_key"] = api_key

    cfg["vault_path"] = str(Path(cfg["vault_path"]).expanduser().resolve())
    return cfg


def save_config(cfg: dict[str, Any], config_path: str | Path) -> None:
    """Write the whole configuration back to disk.

    A key that came from ``ANTHROPIC_API_KEY`` is not written; the key already
    in the file (if any) is kept instead.
    """
    data = copy.deepcopy(cfg)
    path = Path(config_path)
    env_key = os.environ.get("ANTHROPIC_API_KEY")
    if env_key and data.get("claude_api_key") == env_key:
        data["claude_api_key"] = _saved_api_key(path)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


def _saved_api_key(path: Path) -> str:
    if not path.exists():
        return ""
    with open(path, encoding="utf-8") as f:
        file_cfg = yaml.safe_load(f) or {}
    key = file_cfg.get("claude_api_key") if isinstance(file_cfg, dict) else None
    return key or ""


def knowledge_graph_settings(cfg: dict[str, Any]) -> dict[str, Any]:
    """Knowledge graph settings with defaults filled in.

    Raises ConfigError when the score floor or link cap is not a number.
    """
    settings = dict(DEFAULT_CONFIG["knowledge_graph"])
    settings.update(cfg.get("knowledge_graph") or {})

    for key, kind in (("min_similarity_score", float), ("max_links_per_document", int)):
        value = settings[key]
        if isinstance(value, bool):
            raise ConfigError(f"knowledge_graph.{key} must be a number, got {value!r}")
        try:
            settings[key] = kind(value)
        except (TypeError, ValueError):
            raise ConfigError(f"knowledge_graph.{key} must be a number, got {value!r}") from None
    return settings


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
