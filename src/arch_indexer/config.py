"""
Indexer configuration.

Settings come from three layers, later layers winning:

1. Defaults declared on the models below
2. An optional YAML file
3. Environment variables (a .env file is loaded by the CLI first)

Example YAML:

    node_url: http://localhost:9002
    database:
      host: localhost
      name: archindexer
      user: postgres
    sync:
      batch_size: 100
      concurrent_batches: 5
    api:
      port: 3003
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import BaseModel, ConfigDict, Field

from arch_indexer.api import ApiServerConfig
from arch_indexer.storage import PoolConfig
from arch_indexer.sync import BATCH_SIZE, CONCURRENT_BATCHES, TX_BATCH_SIZE

DEFAULT_NODE_URL: Final = "http://localhost:9002"
"""Node RPC endpoint used when none is configured."""

CLOUD_SQL_SOCKET_DIR: Final = "/cloudsql"
"""Directory holding Cloud SQL unix sockets."""


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SyncConfig(_Section):
    """Sync engine tunables."""

    batch_size: int = Field(default=BATCH_SIZE, gt=0)
    """Heights per window."""

    concurrent_batches: int = Field(default=CONCURRENT_BATCHES, gt=0)
    """Maximum windows per round."""

    tx_batch_size: int = Field(default=TX_BATCH_SIZE, gt=0)
    """Transactions fetched concurrently per sub-batch."""


class DatabaseConfig(_Section):
    """
    Database location.

    When `sqlite_path` is set the index lives in that SQLite file and the
    PostgreSQL settings are ignored.
    """

    host: str = "localhost"
    """PostgreSQL host name or unix socket directory."""

    port: int = 5432
    """PostgreSQL port."""

    name: str = "archindexer"
    """Database name."""

    user: str = "postgres"
    """Database user."""

    password: str | None = None
    """Database password."""

    sqlite_path: str | None = None
    """SQLite file to use instead of PostgreSQL."""

    @property
    def uses_sqlite(self) -> bool:
        """Whether the SQLite backend is selected."""
        return self.sqlite_path is not None

    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for asyncpg.create_pool."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.name,
            "user": self.user,
            "password": self.password,
        }


class IndexerConfig(_Section):
    """Complete indexer configuration."""

    node_url: str = DEFAULT_NODE_URL
    """Node RPC endpoint."""

    node_timeout: float = Field(default=30.0, gt=0)
    """Per-request timeout for node calls, in seconds."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    """Database settings."""

    pool: PoolConfig = Field(default_factory=PoolConfig)
    """PostgreSQL pool sizing."""

    sync: SyncConfig = Field(default_factory=SyncConfig)
    """Sync engine tunables."""

    api: ApiServerConfig = Field(default_factory=ApiServerConfig)
    """Read API server settings."""

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> IndexerConfig:
        """
        Load configuration from a YAML file, without environment overrides.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        return cls.model_validate(_read_yaml(path))

    @classmethod
    def from_yaml(cls, content: str) -> IndexerConfig:
        """Load configuration from a YAML string."""
        return cls.model_validate(yaml.safe_load(content) or {})

    @classmethod
    def load(
        cls,
        path: Path | str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> IndexerConfig:
        """
        Build the effective configuration.

        Args:
            path: Optional YAML file.
            environ: Environment to read overrides from. Defaults to os.environ.
        """
        data = _read_yaml(path) if path is not None else {}
        apply_env_overrides(data, os.environ if environ is None else environ)
        return cls.model_validate(data)


def _read_yaml(path: Path | str) -> dict[str, Any]:
    with Path(path).open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Overlay environment variables onto raw configuration data in place.

    Values stay strings; pydantic converts them during validation.

    Recognized variables:
        ARCH_NODE_URL, DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
        INSTANCE_CONNECTION_NAME, SQLITE_PATH, PORT, INDEXER_PORT,
        BATCH_SIZE, CONCURRENT_BATCHES, TX_BATCH_SIZE.
    """

    def section(name: str) -> dict[str, Any]:
        return data.setdefault(name, {})

    if url := environ.get("ARCH_NODE_URL"):
        data["node_url"] = url

    for var, key in (
        ("DB_HOST", "host"),
        ("DB_PORT", "port"),
        ("DB_NAME", "name"),
        ("DB_USER", "user"),
        ("DB_PASSWORD", "password"),
        ("SQLITE_PATH", "sqlite_path"),
    ):
        if value := environ.get(var):
            section("database")[key] = value

    # Cloud SQL connects through a unix socket and takes precedence over DB_HOST.
    if instance := environ.get("INSTANCE_CONNECTION_NAME"):
        section("database")["host"] = f"{CLOUD_SQL_SOCKET_DIR}/{instance}"

    # PORT is set by Cloud Run and wins over INDEXER_PORT.
    if port := environ.get("PORT") or environ.get("INDEXER_PORT"):
        section("api")["port"] = port

    for var, key in (
        ("BATCH_SIZE", "batch_size"),
        ("CONCURRENT_BATCHES", "concurrent_batches"),
        ("TX_BATCH_SIZE", "tx_batch_size"),
    ):
        if value := environ.get(var):
            section("sync")[key] = value

    return data
