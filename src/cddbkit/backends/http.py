"""Backend tunnelling CDDB commands through the HTTP CGI interface."""

import logging
import urllib.request
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode

from cddbkit.backends.base import Reply, parse_response
from cddbkit.config import HttpConfig
from cddbkit.exceptions import BackendError

logger = logging.getLogger(__name__)

WIRE_ENCODING = "latin-1"


class HttpBackend:
    """Stateless CDDB-over-HTTP backend.

    Each command is one POST carrying the ``cmd``, ``hello`` and ``proto``
    form fields. There is no connection to hold, so ``connected`` is
    always False and ``connect`` always succeeds.
    """

    def __init__(self, config: HttpConfig) -> None:
        self._config = config
        self._reply = Reply(0, "")

    @property
    def hello(self) -> str:
        cfg = self._config
        return f"{cfg.user} {cfg.hostname} {cfg.client_name} {cfg.client_version}"

    def connect(self) -> bool:
        return True

    def disconnect(self) -> bool:
        return True

    def connected(self) -> bool:
        return False

    def is_remote(self) -> bool:
        return True

    def status(self) -> int:
        return self._reply.status

    def message(self) -> str:
        return self._reply.message

    def receive(self) -> str:
        return self._reply.body

    def send(self, command: str) -> None:
        cfg = self._config
        data = urlencode(
            {"cmd": command, "hello": self.hello, "proto": str(cfg.proto)}
        ).encode("ascii")
        request = urllib.request.Request(
            cfg.url,
            data=data,
            headers={"User-Agent": f"{cfg.client_name}/{cfg.client_version}"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=cfg.timeout) as response:
                body = response.read().decode(WIRE_ENCODING)
        except (HTTPError, URLError, OSError, TimeoutError) as e:
            raise BackendError(f"HTTP request to {cfg.url} failed: {e}") from e

        self._reply = parse_response(body.strip().splitlines())
        logger.debug("%s: %r -> %d", cfg.url, command, self._reply.status)
