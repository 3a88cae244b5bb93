"""
Configuration for the Odoo MCP server.

Settings are read once from the environment (optionally seeded from a
.env file) into immutable dataclasses, then passed explicitly to the
Odoo client, the search tool and the knowledge base.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

log = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Required configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_env() -> None:
    """Load .env from the project root, falling back to the CWD."""
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        log.info("Loaded .env from %s", env_path)
        return
    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(cwd_env)
        log.info("Loaded .env from %s", cwd_env)


def _int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


# ---------------------------------------------------------------------------
# Config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OdooConfig:
    url: str = ""
    db: str = ""
    username: str = ""
    password: str = ""
    timeout: float = 60.0

    @property
    def endpoint(self) -> str:
        return self.url.rstrip("/") + "/jsonrpc"

    def require(self) -> None:
        """Raise ConfigError unless every credential is set."""
        if not all([self.url, self.db, self.username, self.password]):
            raise ConfigError(
                "Missing Odoo credentials. "
                "Set ODOO_URL, ODOO_DB, ODOO_USERNAME, ODOO_PASSWORD "
                "in .env or environment."
            )


@dataclass(frozen=True)
class SearchConfig:
    default_limit: int = 20
    max_limit: int = 100


@dataclass(frozen=True)
class EmbeddingConfig:
    api_key: str = ""
    model: str = "text-embedding-ada-002"
    dimensions: int = 1536
    batch_size: int = 100


@dataclass(frozen=True)
class ChunkConfig:
    size: int = 1500
    overlap: int = 200
    section_size: int = 3000
    section_overlap: int = 300


@dataclass(frozen=True)
class KnowledgeConfig:
    default_limit: int = 5
    max_limit: int = 10
    threshold: float = 0.7
    # Candidates fetched per requested result before threshold filtering
    candidate_factor: int = 2
    directory: str | None = None
    chunks: ChunkConfig = field(default_factory=ChunkConfig)


@dataclass(frozen=True)
class Settings:
    odoo: OdooConfig = field(default_factory=OdooConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    knowledge: KnowledgeConfig = field(default_factory=KnowledgeConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables (after loading .env)."""
        _load_env()
        env = os.environ

        odoo = OdooConfig(
            url=env.get("ODOO_URL", ""),
            db=env.get("ODOO_DB", ""),
            username=env.get("ODOO_USERNAME", ""),
            password=env.get("ODOO_PASSWORD", ""),
            timeout=_float("ODOO_TIMEOUT", 60.0),
        )
        search = SearchConfig(
            default_limit=_int("SEARCH_DEFAULT_LIMIT", 20),
            max_limit=_int("SEARCH_MAX_LIMIT", 100),
        )
        embedding = EmbeddingConfig(
            api_key=env.get("OPENAI_API_KEY", ""),
            model=env.get("EMBEDDING_MODEL", "text-embedding-ada-002"),
            dimensions=_int("EMBEDDING_DIMENSIONS", 1536),
            batch_size=_int("EMBEDDING_BATCH_SIZE", 100),
        )
        chunks = ChunkConfig(
            size=_int("CHUNK_SIZE", 1500),
            overlap=_int("CHUNK_OVERLAP", 200),
            section_size=_int("SECTION_CHUNK_SIZE", 3000),
            section_overlap=_int("SECTION_CHUNK_OVERLAP", 300),
        )
        knowledge = KnowledgeConfig(
            default_limit=_int("KNOWLEDGE_DEFAULT_LIMIT", 5),
            max_limit=_int("KNOWLEDGE_MAX_LIMIT", 10),
            threshold=_float("KNOWLEDGE_THRESHOLD", 0.7),
            directory=env.get("KNOWLEDGE_DIR") or None,
            chunks=chunks,
        )

        if chunks.overlap >= chunks.size:
            raise ConfigError("CHUNK_OVERLAP must be smaller than CHUNK_SIZE")
        if chunks.section_overlap >= chunks.section_size:
            raise ConfigError("SECTION_CHUNK_OVERLAP must be smaller than SECTION_CHUNK_SIZE")
        if not 0.0 <= knowledge.threshold <= 1.0:
            raise ConfigError("KNOWLEDGE_THRESHOLD must be between 0 and 1")

        return cls(
            odoo=odoo,
            search=search,
            embedding=embedding,
            knowledge=knowledge,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
