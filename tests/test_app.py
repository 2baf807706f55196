"""Tests for the CDDB HTTP listener."""

from pathlib import Path

import pytest
from cddbkit.backends.filesystem import FilesystemBackend
from cddbkit.exceptions import ConfigError
from cddbkit.models.enums import HookKind
from cddbkit.server.app import CGI_PATH, create_app, decode_commands
from cddbkit.server.dispatcher import RequestDispatcher
from cddbkit.settings import Settings
from fastapi.testclient import TestClient

HELLO = {"hello": "joe my.host.com xmcd 2.1", "proto": "5"}

LSCAT = (
    "210 OK, category list follows (until terminating `.')\r\n"
    "jazz\r\nrock\r\n.\r\n"
)


@pytest.fixture
def settings(freedb_dir: Path) -> Settings:
    """Settings serving the sample dump directory."""
    return Settings(backend=f"filesystem://{freedb_dir}", interface="http")


@pytest.fixture
def dispatcher(filesystem_backend: FilesystemBackend) -> RequestDispatcher:
    """A dispatcher over the sample dump directory."""
    return RequestDispatcher(filesystem_backend)


@pytest.fixture
def client(settings: Settings, dispatcher: RequestDispatcher) -> TestClient:
    """Test client for an app with a prebuilt dispatcher."""
    return TestClient(create_app(settings=settings, dispatcher=dispatcher))


class TestDecodeCommands:
    """Tests for decode_commands."""

    def test_full_request(self) -> None:
        """cmd, hello and proto become the handshake plus the command."""
        assert decode_commands({"cmd": "cddb lscat", **HELLO}) == [
            "cddb hello joe my.host.com xmcd 2.1",
            "proto 5",
            "cddb lscat",
        ]

    @pytest.mark.parametrize(
        "params",
        [
            {"hello": "joe host xmcd 2.1", "proto": "5"},
            {"cmd": "cddb lscat", "proto": "5"},
            {"cmd": "cddb lscat", "hello": "joe host xmcd 2.1"},
            {"cmd": "  ", **HELLO},
        ],
        ids=["no_cmd", "no_hello", "no_proto", "blank_cmd"],
    )
    def test_incomplete(self, params: dict[str, str]) -> None:
        """A request missing a parameter decodes to nothing."""
        assert decode_commands(params) == []


class TestCgiEndpoint:
    """Tests for the CGI endpoint."""

    def test_get_lscat(self, client: TestClient) -> None:
        """GET requests are answered with protocol text."""
        response = client.get(CGI_PATH, params={"cmd": "cddb lscat", **HELLO})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == LSCAT

    def test_post_form(self, client: TestClient) -> None:
        """POST form data is accepted like query parameters."""
        response = client.post(CGI_PATH, data={"cmd": "cddb lscat", **HELLO})
        assert response.text == LSCAT

    def test_read(self, client: TestClient) -> None:
        """cddb read returns the terminated record."""
        response = client.get(
            CGI_PATH, params={"cmd": "cddb read rock 1b038203", **HELLO}
        )

        lines = response.text.split("\r\n")
        assert lines[0] == "210 rock 1b038203 CD database entry follows (until terminating `.')"
        assert "DTITLE=The Skatalites / Foundation Ska" in lines
        assert lines[-2:] == [".", ""]

    def test_query(self, client: TestClient) -> None:
        """cddb query answers a single match on the status line."""
        response = client.get(
            CGI_PATH,
            params={"cmd": "cddb query 1b038203 3 150 21052 43715 900", **HELLO},
        )
        assert response.text == "200 rock 1b038203 The Skatalites / Foundation Ska\r\n"

    def test_missing_parameters(self, client: TestClient) -> None:
        """A request without hello or proto is a syntax error."""
        response = client.get(CGI_PATH, params={"cmd": "cddb lscat"})
        assert response.text == "500 Command syntax error: incorrect number of arguments.\r\n"

    def test_unknown_command(self, client: TestClient) -> None:
        """Unknown commands are rejected."""
        response = client.get(CGI_PATH, params={"cmd": "sites", **HELLO})
        assert response.text == "500 Unrecognized command.\r\n"

    def test_stat_reports_interface(self, client: TestClient) -> None:
        """stat reports the listener's interface."""
        response = client.get(CGI_PATH, params={"cmd": "stat", **HELLO})
        assert "    interface: http\r\n" in response.text

    def test_cddb_error_from_hook(
        self, settings: Settings, dispatcher: RequestDispatcher
    ) -> None:
        """A CDDBError is answered with an internal error line."""

        def reject(commands: list[str]) -> None:
            raise ConfigError("Bad request")

        dispatcher.register_hook(HookKind.REQUEST, reject)
        client = TestClient(create_app(settings=settings, dispatcher=dispatcher))

        response = client.get(CGI_PATH, params={"cmd": "cddb lscat", **HELLO})

        assert response.status_code == 400
        assert response.text == "402 Internal server error.\r\n"


class TestLifespan:
    """Tests for backend creation from settings."""

    def test_backend_from_settings(self, settings: Settings) -> None:
        """Without a dispatcher the backend is built from the DSN."""
        app = create_app(settings=settings)

        with TestClient(app) as client:
            response = client.get(CGI_PATH, params={"cmd": "cddb lscat", **HELLO})
            assert response.text == LSCAT
            backend = app.state.dispatcher.backend
            assert isinstance(backend, FilesystemBackend)
            assert backend.connected() is True

        assert backend.connected() is False
