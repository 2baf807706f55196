"""Configuration for cddbkit.

Backends are described by a DSN string such as::

    cddbp://anonymous@freedb.freedb.org:8880
    http://freedb.freedb.org/~cddb/cddb.cgi
    filesystem:///var/lib/freedb?motd_file=/etc/cddb/motd.txt
    sqlite:///var/lib/cddb.db

``parse_dsn`` turns the string into one of the typed, frozen configs below.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qs, unquote, urlsplit

from cddbkit.exceptions import ConfigError
from cddbkit.models.enums import BackendKind

CLIENT_NAME = "cddbkit"
CLIENT_VERSION = "0.4.0"

DEFAULT_CDDBP_PORT = 8880
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTP_PATH = "/~cddb/cddb.cgi"
DEFAULT_PROTOCOL_LEVEL = 5
DEFAULT_TIMEOUT = 30.0

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class CddbpConfig:
    """Raw socket (CDDBP) backend configuration.

    Attributes:
        host: Server hostname.
        port: Server port.
        user: User name sent in the ``cddb hello`` handshake.
        hostname: Client host name sent in the handshake.
        client_name: Client application name sent in the handshake.
        client_version: Client application version sent in the handshake.
        proto: Protocol level requested after the handshake.
        timeout: Socket timeout in seconds.
    """

    host: str
    port: int = DEFAULT_CDDBP_PORT
    user: str = "anonymous"
    hostname: str = "localhost"
    client_name: str = CLIENT_NAME
    client_version: str = CLIENT_VERSION
    proto: int = DEFAULT_PROTOCOL_LEVEL
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class HttpConfig:
    """HTTP tunnel backend configuration.

    Attributes:
        host: Server hostname.
        port: Server port.
        path: Path of the CDDB CGI endpoint.
        user: User name sent in the ``hello`` parameter.
        hostname: Client host name sent in the ``hello`` parameter.
        client_name: Client application name.
        client_version: Client application version.
        proto: Protocol level sent in the ``proto`` parameter.
        timeout: Request timeout in seconds.
    """

    host: str
    port: int = DEFAULT_HTTP_PORT
    path: str = DEFAULT_HTTP_PATH
    user: str = "anonymous"
    hostname: str = "localhost"
    client_name: str = CLIENT_NAME
    client_version: str = CLIENT_VERSION
    proto: int = DEFAULT_PROTOCOL_LEVEL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"


@dataclass(frozen=True)
class FilesystemConfig:
    """FreeDB dump directory backend configuration.

    Attributes:
        root: Directory holding one subdirectory per category.
        motd_file: Optional file served by the ``motd`` command.
        use_stat_file: Cache ``stat`` counts in a file inside ``root``.
        stat_file: Name of the stat cache file.
    """

    root: Path
    motd_file: Path | None = None
    use_stat_file: bool = True
    stat_file: str = "stat.db"


@dataclass(frozen=True)
class SqlConfig:
    """SQL store backend configuration.

    Attributes:
        url: SQLAlchemy database URL.
        motd_file: Optional file served by the ``motd`` command.
        create_tables: Create missing tables on connect.
    """

    url: str
    motd_file: Path | None = None
    create_tables: bool = True


BackendConfig = CddbpConfig | HttpConfig | FilesystemConfig | SqlConfig


@dataclass(frozen=True)
class ClientConfig:
    """CDDB client configuration.

    Attributes:
        persist: Keep the backend connection open between calls. When
            False every call connects and disconnects.
        use_sudo: Run CD TOC readers through sudo.
        device: Default CD-ROM device path.
        email: Default email address for submissions.
        submit_server: Host receiving disc submissions.
        submit_port: Port of the submit server.
        submit_uri: Path of the submit CGI.
        timeout: Timeout in seconds for submissions.
    """

    persist: bool = True
    use_sudo: bool = False
    device: str = "/dev/cdrom"
    email: str | None = None
    submit_server: str = "gnudb.gnudb.org"
    submit_port: int = 80
    submit_uri: str = "/~cddb/submit.cgi"
    timeout: float = DEFAULT_TIMEOUT


_SCHEME_KINDS: dict[str, BackendKind] = {
    "cddbp": BackendKind.CDDBP,
    "http": BackendKind.HTTP,
    "filesystem": BackendKind.FILESYSTEM,
    "file": BackendKind.FILESYSTEM,
    "sql": BackendKind.SQL,
    "sqlite": BackendKind.SQL,
    "mysql": BackendKind.SQL,
    "postgresql": BackendKind.SQL,
}


def backend_kind(scheme: str) -> BackendKind:
    """Map a DSN scheme onto a backend kind.

    ``sql.<dialect>`` and ``<dialect>+<driver>`` schemes map to SQL.

    Raises:
        ConfigError: If the scheme is not supported.
    """
    scheme = scheme.lower()
    base = scheme.split(".", 1)[0].split("+", 1)[0]
    if base not in _SCHEME_KINDS:
        raise ConfigError(f"Unsupported backend scheme: {scheme!r}")
    return _SCHEME_KINDS[base]


def _flag(params: dict[str, list[str]], name: str, default: bool) -> bool:
    if name not in params:
        return default
    return params[name][-1].lower() in _TRUE_VALUES


def _param(params: dict[str, list[str]], name: str) -> str | None:
    return params[name][-1] if name in params else None


def _float_param(params: dict[str, list[str]], name: str, default: float) -> float:
    value = _param(params, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"Invalid {name}: {value!r}") from e


def _sql_url(scheme: str, dsn: str) -> str:
    """Strip the ``sql.`` wrapper, leaving a SQLAlchemy URL."""
    rest = dsn.split("://", 1)[1] if "://" in dsn else ""
    if scheme == "sql":
        return f"sqlite://{rest}" if rest.startswith("/") else f"sqlite:///{rest}"
    if scheme.startswith("sql."):
        return f"{scheme[4:]}://{rest}"
    return dsn


def parse_dsn(dsn: str) -> BackendConfig:
    """Parse a backend DSN into a typed configuration.

    Args:
        dsn: Backend DSN, e.g. ``cddbp://freedb.freedb.org:8880``.

    Returns:
        The configuration for the backend the scheme names.

    Raises:
        ConfigError: If the scheme is unknown or a required part is missing.
    """
    if "://" not in dsn:
        raise ConfigError(f"Invalid backend DSN (missing scheme): {dsn!r}")

    parts = urlsplit(dsn)
    scheme = parts.scheme.lower()
    kind = backend_kind(scheme)
    params = parse_qs(parts.query)

    try:
        port = parts.port
    except ValueError as e:
        raise ConfigError(f"Invalid port in DSN: {dsn!r}") from e

    user = unquote(parts.username) if parts.username else "anonymous"
    timeout = _float_param(params, "timeout", DEFAULT_TIMEOUT)
    motd = _param(params, "motd_file")
    motd_file = Path(motd) if motd else None

    match kind:
        case BackendKind.CDDBP | BackendKind.HTTP:
            if not parts.hostname:
                raise ConfigError(f"Backend DSN is missing a host: {dsn!r}")
            common = {
                "host": parts.hostname,
                "user": user,
                "hostname": _param(params, "hostname") or "localhost",
                "client_name": _param(params, "client_name") or CLIENT_NAME,
                "client_version": _param(params, "client_version")
                or CLIENT_VERSION,
                "timeout": timeout,
            }
            if kind is BackendKind.CDDBP:
                return CddbpConfig(port=port or DEFAULT_CDDBP_PORT, **common)
            return HttpConfig(
                port=port or DEFAULT_HTTP_PORT,
                path=parts.path or DEFAULT_HTTP_PATH,
                **common,
            )
        case BackendKind.FILESYSTEM:
            root = unquote(parts.netloc + parts.path)
            if not root:
                raise ConfigError(f"Backend DSN is missing a directory: {dsn!r}")
            return FilesystemConfig(
                root=Path(root),
                motd_file=motd_file,
                use_stat_file=_flag(params, "use_stat_file", True),
            )
        case BackendKind.SQL:
            url = _sql_url(scheme, dsn.split("?", 1)[0])
            return SqlConfig(
                url=url,
                motd_file=motd_file,
                create_tables=_flag(params, "create_tables", True),
            )
