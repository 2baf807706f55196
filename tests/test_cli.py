"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from cddbkit.cli import main, split_toc
from cddbkit.db import DB_FILE
from click import BadParameter
from click.testing import CliRunner

SAMPLE_TOC = ["150", "21052", "43715", "900"]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def server(freedb_dir: Path) -> list[str]:
    """Global options pointing the CLI at the sample dump directory."""
    return ["--server", f"filesystem://{freedb_dir}"]


class TestSplitToc:
    """Tests for split_toc."""

    def test_split(self) -> None:
        """The last value is the disc length."""
        assert split_toc((150, 21052, 900)) == ([150, 21052], 900)

    def test_too_short(self) -> None:
        """A TOC needs at least one offset and the length."""
        with pytest.raises(BadParameter):
            split_toc((900,))


class TestDiscIdCommand:
    """Tests for the discid command."""

    def test_local(self, runner: CliRunner) -> None:
        """The disc ID is computed without a server."""
        result = runner.invoke(main, ["discid", *SAMPLE_TOC])
        assert result.exit_code == 0
        assert result.output.strip() == "1b038203"

    def test_remote(self, runner: CliRunner, server: list[str]) -> None:
        """--remote asks the backend."""
        result = runner.invoke(main, [*server, "discid", "--remote", *SAMPLE_TOC])
        assert result.exit_code == 0
        assert result.output.strip() == "1b038203"

    def test_too_short(self, runner: CliRunner) -> None:
        """A single value is a usage error."""
        result = runner.invoke(main, ["discid", "900"])
        assert result.exit_code == 2


class TestLookupCommands:
    """Tests for query, read and categories."""

    def test_query_json(self, runner: CliRunner, server: list[str]) -> None:
        """--json prints the search result."""
        result = runner.invoke(main, [*server, "query", "--json", *SAMPLE_TOC])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "found"
        assert data["code"] == 200
        assert [d["category"] for d in data["discs"]] == ["rock"]
        assert data["discs"][0]["artist"] == "The Skatalites"

    def test_query_table(self, runner: CliRunner, server: list[str]) -> None:
        """Matches are printed as a table."""
        result = runner.invoke(main, [*server, "query", *SAMPLE_TOC])
        assert result.exit_code == 0
        assert "1b038203" in result.output
        assert "MATCHES" in result.output

    def test_query_no_match(self, runner: CliRunner, server: list[str]) -> None:
        """An unknown disc is reported, not an error."""
        result = runner.invoke(main, [*server, "query", "150", "60"])
        assert result.exit_code == 0
        assert "No match found" in result.output

    def test_read_json(self, runner: CliRunner, server: list[str]) -> None:
        """--json prints the parsed disc."""
        result = runner.invoke(main, [*server, "read", "--json", "rock", "1b038203"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["disc_id"] == "1b038203"
        assert data["title"] == "Foundation Ska"
        assert len(data["tracks"]) == 3

    def test_read_raw(self, runner: CliRunner, server: list[str]) -> None:
        """--raw prints the record text."""
        result = runner.invoke(main, [*server, "read", "--raw", "rock", "1b038203"])

        assert result.exit_code == 0
        assert result.output.startswith("# xmcd\n")
        assert "DTITLE=The Skatalites / Foundation Ska\n" in result.output

    def test_read_card(self, runner: CliRunner, server: list[str]) -> None:
        """Without flags the disc is printed as a card."""
        result = runner.invoke(main, [*server, "read", "rock", "1b038203"])
        assert result.exit_code == 0
        assert "Guns Of Navarone" in result.output

    def test_read_missing(self, runner: CliRunner, server: list[str]) -> None:
        """A missing disc is an error."""
        result = runner.invoke(main, [*server, "read", "rock", "ffffffff"])
        assert result.exit_code == 1
        assert "No entry for rock/ffffffff" in result.output

    def test_categories(self, runner: CliRunner, server: list[str]) -> None:
        """Categories are printed one per line."""
        result = runner.invoke(main, [*server, "categories"])
        assert result.exit_code == 0
        assert result.output.split() == ["jazz", "rock"]

    def test_bad_server(self, runner: CliRunner) -> None:
        """An unsupported DSN is reported."""
        result = runner.invoke(main, ["--server", "ftp://example.com", "categories"])
        assert result.exit_code == 1
        assert "Unsupported backend scheme" in result.output


class TestServerInformationCommands:
    """Tests for stat, ver and motd."""

    def test_stat_json(self, runner: CliRunner, server: list[str]) -> None:
        """--json prints the statistics."""
        result = runner.invoke(main, [*server, "stat", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["interface"] == "filesystem"
        assert data["rock"] == "1"
        assert data["jazz"] == "1"

    def test_ver(self, runner: CliRunner, server: list[str]) -> None:
        """ver prints the backend version."""
        result = runner.invoke(main, [*server, "ver"])
        assert result.output.strip() == "cddbkit/FilesystemBackend v0.4.0"

    def test_motd(
        self, runner: CliRunner, server: list[str], freedb_dir: Path
    ) -> None:
        """motd prints the message of the day."""
        (freedb_dir / "motd.txt").write_text("Welcome!\n", encoding="latin-1")
        result = runner.invoke(main, [*server, "motd"])
        assert result.output.strip() == "Welcome!"


class TestCdCommand:
    """Tests for the cd command."""

    def test_static_reader(self, runner: CliRunner, server: list[str]) -> None:
        """The disc ID is printed before the search result."""
        result = runner.invoke(
            main, [*server, "cd", "--reader", "static", "--device", "/dev/acd1"]
        )

        assert result.exit_code == 0
        assert "Disc ID: d50dd30f" in result.output
        assert "No match found" in result.output

    def test_reads_disc_once(self, runner: CliRunner, server: list[str]) -> None:
        """The drive is read once for both the disc ID and the search."""
        reader = MagicMock()
        reader.read_track_offsets.return_value = [150, 21052, 43715, 900]
        with patch("cddbkit.cli.create_reader", return_value=reader):
            result = runner.invoke(main, [*server, "cd", "--device", "/dev/sr0"])

        assert result.exit_code == 0
        assert "Disc ID: 1b038203" in result.output
        assert "MATCHES" in result.output
        reader.read_track_offsets.assert_called_once_with(False, "/dev/sr0")

    def test_no_disc(self, runner: CliRunner, server: list[str]) -> None:
        """An unreadable drive is an error."""
        result = runner.invoke(
            main, [*server, "cd", "--reader", "static", "--device", "/dev/nothing"]
        )
        assert result.exit_code == 1
        assert "No disc found" in result.output


class TestImportCommand:
    """Tests for the import command."""

    def test_import_then_serve_from_sql(
        self, runner: CliRunner, freedb_dir: Path, sqlite_url: str
    ) -> None:
        """Imported records can be looked up through the SQL backend."""
        result = runner.invoke(main, ["import", str(freedb_dir), "--database", sqlite_url])

        assert result.exit_code == 0
        assert "IMPORT" in result.output

        result = runner.invoke(main, ["--server", sqlite_url, "categories"])
        assert result.output.split() == ["jazz", "rock"]

    def test_category_filter(
        self, runner: CliRunner, freedb_dir: Path, sqlite_url: str
    ) -> None:
        """-c limits the import to the given categories."""
        runner.invoke(
            main, ["import", str(freedb_dir), "--database", sqlite_url, "-c", "jazz"]
        )
        result = runner.invoke(main, ["--server", sqlite_url, "categories"])
        assert result.output.split() == ["jazz"]

    def test_default_database(self, runner: CliRunner, freedb_dir: Path) -> None:
        """Without --database the records go to the default file in the cwd."""
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["import", str(freedb_dir)])

            assert result.exit_code == 0
            assert Path(DB_FILE).is_file()
            result = runner.invoke(main, ["--server", f"sqlite:///{DB_FILE}", "categories"])
            assert result.output.split() == ["jazz", "rock"]

    def test_invalid_database(self, runner: CliRunner, freedb_dir: Path) -> None:
        """An invalid database URL is reported."""
        result = runner.invoke(main, ["import", str(freedb_dir), "--database", "notaurl"])
        assert result.exit_code == 1
        assert "Invalid database URL" in result.output


class TestSubmitCommand:
    """Tests for the submit command."""

    @pytest.fixture
    def record_file(self, tmp_path: Path, record_text: str) -> Path:
        path = tmp_path / "1b038203"
        path.write_text(record_text, encoding="latin-1")
        return path

    def test_submit(self, runner: CliRunner, server: list[str], record_file: Path) -> None:
        """An accepted record is reported."""
        response = MagicMock()
        response.read.return_value = b"200 OK, submission has been sent.\r\n"
        response.__enter__.return_value = response
        with patch(
            "cddbkit.services.submit.urllib.request.urlopen", return_value=response
        ) as urlopen:
            result = runner.invoke(
                main,
                [
                    *server,
                    "submit",
                    str(record_file),
                    "--category",
                    "rock",
                    "--email",
                    "me@example.com",
                    "--test",
                ],
            )

        assert result.exit_code == 0
        assert "Submitted rock/1b038203: OK, submission has been sent" in result.output
        assert urlopen.call_args.args[0].get_header("Submit-mode") == "test"

    def test_submit_without_email(
        self, runner: CliRunner, server: list[str], record_file: Path
    ) -> None:
        """Submitting without an email address fails."""
        result = runner.invoke(
            main,
            [*server, "submit", str(record_file), "--category", "rock"],
            env={"CDDBKIT_EMAIL": None},
        )
        assert result.exit_code == 1
        assert "email address is required" in result.output
