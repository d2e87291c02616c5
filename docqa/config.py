"""
Configuration loading
----------------------
Settings live in config/config.yaml; secrets (API keys) come from the
environment, optionally via a .env file.

load_config() deep-merges the YAML file onto DEFAULTS so a partial config
file is always valid. The config path can be overridden with DOCQA_CONFIG,
and the Chroma endpoint with CHROMA_HOST / CHROMA_PORT.
"""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULTS: dict[str, Any] = {
    "project": {"name": "Portfolio Document Q&A"},
    "logging": {"level": "INFO", "file": "logs/docqa.log", "rotation": "10 MB", "retention": "7 days"},
    "paths": {
        "docs_dir": "doc",
        "registry_file": "app/collections.txt",
        "manifest_file": "data/ingest_manifest.json",
    },
    "chroma": {
        # host: null -> embedded PersistentClient at persist_dir
        "host": "localhost",
        "port": 8000,
        "persist_dir": "data/chroma",
        "distance": "l2",
    },
    "parsing": {"chunk_size": 1000, "chunk_overlap": 100},
    "embedding": {"model": "text-embedding-3-small", "batch_size": 512},
    "search": {"top_k": 3},
    "generation": {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "max_tokens": 1024,
        "temperature": 0.2,
        "persona": "the portfolio owner",
        "max_context_results": None,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> dict:
    """
    Load the YAML config and merge it onto DEFAULTS.

    A missing file is not an error: the defaults alone describe a local
    setup (Chroma on localhost:8000, documents under ./doc).
    """
    load_dotenv()

    config_path = Path(path or os.getenv("DOCQA_CONFIG", DEFAULT_CONFIG_PATH))
    raw: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg = _deep_merge(DEFAULTS, raw)

    if os.getenv("CHROMA_HOST"):
        cfg["chroma"]["host"] = os.environ["CHROMA_HOST"]
    if os.getenv("CHROMA_PORT"):
        cfg["chroma"]["port"] = int(os.environ["CHROMA_PORT"])
    return cfg
