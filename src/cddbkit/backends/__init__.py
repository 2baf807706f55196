"""CDDB backends and the factory that builds them from configuration.

Public API:
    Backend - Protocol every backend implements
    CddbpBackend, HttpBackend - Remote CDDB servers
    FilesystemBackend, SqlBackend - Local databases
    create_backend - Build a backend from a typed config
    backend_from_dsn - Build a backend from a DSN string
"""

from collections.abc import Callable
from typing import Any

from cddbkit.backends.base import Backend, LocalBackend, Reply, split_command
from cddbkit.backends.cddbp import CddbpBackend
from cddbkit.backends.filesystem import FilesystemBackend
from cddbkit.backends.http import HttpBackend
from cddbkit.backends.sql import SqlBackend
from cddbkit.config import (
    BackendConfig,
    CddbpConfig,
    FilesystemConfig,
    HttpConfig,
    SqlConfig,
    parse_dsn,
)
from cddbkit.exceptions import ConfigError

_REGISTRY: dict[type[Any], Callable[[Any], Backend]] = {
    CddbpConfig: CddbpBackend,
    HttpConfig: HttpBackend,
    FilesystemConfig: FilesystemBackend,
    SqlConfig: SqlBackend,
}


def create_backend(config: BackendConfig) -> Backend:
    """Create the backend for a configuration.

    Raises:
        ConfigError: If no backend handles this configuration type.
    """
    factory = _REGISTRY.get(type(config))
    if factory is None:
        raise ConfigError(f"No backend for {type(config).__name__}")
    return factory(config)


def backend_from_dsn(dsn: str) -> Backend:
    """Parse a DSN and create its backend."""
    return create_backend(parse_dsn(dsn))


__all__ = [
    "Backend",
    "CddbpBackend",
    "FilesystemBackend",
    "HttpBackend",
    "LocalBackend",
    "Reply",
    "SqlBackend",
    "backend_from_dsn",
    "create_backend",
    "split_command",
]
