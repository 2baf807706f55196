#!/usr/bin/env python3
"""Command-line interface for cddbkit.

Looks up discs on a CDDB server, reads CDs, submits records and runs the
HTTP protocol server. For programmatic use, import cddbkit as a library.
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from cddbkit.backends import backend_from_dsn
from cddbkit.client import CDDBClient
from cddbkit.config import ClientConfig
from cddbkit.db import DB_FILE, DiscRepository, create_db_engine, init_db
from cddbkit.exceptions import CDDBError
from cddbkit.lib.discid import compute_disc_id
from cddbkit.lib.record import parse_record
from cddbkit.models.disc import Disc
from cddbkit.models.enums import LookupStatus, ReaderKind
from cddbkit.models.results import QueryResult, Site
from cddbkit.readers import create_reader
from cddbkit.services.importer import ImportStats, import_directory

logger = logging.getLogger("cddbkit")

DEFAULT_SERVER = "cddbp://gnudb.gnudb.org:8880"


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Existing handlers are cleared, so this can be called again to switch to
    a command's own console.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise WARNING.
        console: Optional Console instance to use for RichHandler.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def print_section_header(console: Console, title: str, subtitle: str = "") -> None:
    """Print a section header with optional subtitle."""
    header = f"  {title.upper()}"
    if subtitle:
        header += f"  [dim]│[/dim]  {escape(subtitle)}"
    console.print()
    console.rule(style="dim")
    console.print(header)
    console.rule(style="dim")


def print_matches(console: Console, result: QueryResult) -> None:
    """Print search matches as a table."""
    table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Category")
    table.add_column("Disc ID")
    table.add_column("Artist")
    table.add_column("Title", overflow="fold")
    for i, disc in enumerate(result.discs, 1):
        table.add_row(
            str(i),
            escape(disc.category),
            disc.disc_id.strip(),
            escape(disc.artist),
            escape(disc.title),
        )
    print_section_header(console, "Matches", result.message)
    console.print(table)


def print_disc_card(console: Console, disc: Disc) -> None:
    """Print a disc as a vertical card followed by its track list."""
    card = Table(
        show_header=False,
        padding=(0, 1),
        title=f"[bold yellow]{escape(disc.artist)} / {escape(disc.title)}[/bold yellow]",
        title_justify="left",
    )
    card.add_column("Field", style="bold cyan", width=12)
    card.add_column("Value", overflow="fold")

    card.add_row("Disc ID", disc.disc_id.strip())
    card.add_row("Category", escape(disc.category))
    if disc.genre:
        card.add_row("Genre", escape(disc.genre))
    if disc.year:
        card.add_row("Year", str(disc.year))
    card.add_row("Length", disc.formatted_length)
    card.add_row("Tracks", str(disc.num_tracks))
    if disc.revision >= 0:
        card.add_row("Revision", str(disc.revision))
    if disc.extra_data:
        card.add_row("Notes", escape(disc.extra_data))

    tracks = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
    tracks.add_column("#", justify="right", style="dim")
    tracks.add_column("Title", overflow="fold")
    tracks.add_column("Artist")
    tracks.add_column("Offset", justify="right")
    tracks.add_column("Length", justify="right")
    for i, track in enumerate(disc.tracks, 1):
        tracks.add_row(
            str(i),
            escape(track.title),
            escape(track.artist) if track.artist != disc.artist else "",
            str(track.offset),
            track.formatted_length,
        )

    console.print()
    console.print(card)
    console.print()
    console.print(tracks)


def print_sites(console: Console, sites: list[Site]) -> None:
    """Print mirror sites as a table."""
    table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("Site")
    table.add_column("Protocol")
    table.add_column("Port", justify="right")
    table.add_column("Address")
    table.add_column("Location")
    table.add_column("Description", overflow="fold")
    for site in sites:
        table.add_row(
            site.site,
            site.protocol,
            str(site.port),
            site.address,
            f"{site.latitude} {site.longitude}",
            escape(site.description),
        )
    console.print(table)


def print_import_summary(console: Console, stats: ImportStats) -> None:
    """Print import counts per category."""
    table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("Category")
    table.add_column("Imported", justify="right")
    for category, count in stats.by_category.items():
        table.add_row(escape(category), str(count))
    print_section_header(console, "Import", f"{stats.imported} of {stats.total}")
    console.print(table)
    if stats.skipped:
        console.print(f"[yellow]Skipped {stats.skipped} unreadable record(s)[/yellow]")


def dump_json(data: object) -> None:
    """Write data to stdout as indented JSON."""
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")


def split_toc(toc: tuple[int, ...]) -> tuple[list[int], int]:
    """Split ``OFFSET... LENGTH`` arguments into offsets and disc length."""
    if len(toc) < 2:
        raise click.BadParameter(
            "expected at least one track offset followed by the disc length",
            param_hint="TOC",
        )
    return list(toc[:-1]), toc[-1]


def make_client(
    ctx: click.Context,
    config: ClientConfig | None = None,
    reader: ReaderKind | None = None,
) -> CDDBClient:
    """Build a client for the server given on the command line."""
    try:
        backend = backend_from_dsn(ctx.obj["server"])
    except CDDBError as e:
        raise click.ClickException(str(e)) from e
    return CDDBClient(
        backend,
        reader=create_reader(reader) if reader is not None else None,
        config=config,
    )


def report_query(console: Console, result: QueryResult, as_json: bool) -> None:
    """Print a search result, raising ClickException when it failed."""
    if result.status == LookupStatus.FAILED:
        raise click.ClickException(result.message or "Search failed")
    if as_json:
        dump_json(result.model_dump(mode="json"))
    elif result.status == LookupStatus.NOT_FOUND:
        console.print("[yellow]No match found[/yellow]")
    else:
        print_matches(console, result)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--server",
    envvar="CDDBKIT_SERVER",
    default=DEFAULT_SERVER,
    show_default=True,
    help="Backend DSN (cddbp://, http://, filesystem://, sqlite://).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, server: str) -> None:
    """Look up, read and submit CD metadata on CDDB servers."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["server"] = server
    setup_logging(verbose=verbose)


@main.command(name="discid")
@click.argument("toc", nargs=-1, type=int, required=True)
@click.option("--remote", is_flag=True, help="Ask the server instead of computing.")
@click.pass_context
def discid_cmd(ctx: click.Context, toc: tuple[int, ...], remote: bool) -> None:
    """Compute the disc ID for a table of contents.

    TOC is the start offset of every track in frames, followed by the
    disc length in seconds.

    \b
    Examples:
      cddbkit discid 150 15471 34414 2142
      cddbkit discid --remote 150 15471 34414 2142
    """
    offsets, length = split_toc(toc)
    if not remote:
        click.echo(compute_disc_id(offsets, length))
        return

    with make_client(ctx) as client:
        disc_id = client.request_disc_id(offsets, length)
    if disc_id is None:
        raise click.ClickException("Server could not compute the disc ID")
    click.echo(disc_id)


@main.command(name="query")
@click.argument("toc", nargs=-1, type=int, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def query_cmd(ctx: click.Context, toc: tuple[int, ...], as_json: bool) -> None:
    """Search the database for a table of contents.

    TOC is the start offset of every track in frames, followed by the
    disc length in seconds.
    """
    offsets, length = split_toc(toc)
    console = Console()
    with make_client(ctx) as client:
        result = client.search_database(offsets, length)
    report_query(console, result, as_json)


@main.command(name="read")
@click.argument("category")
@click.argument("disc_id", metavar="DISCID")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--raw", is_flag=True, help="Print the record text.")
@click.pass_context
def read_cmd(
    ctx: click.Context, category: str, disc_id: str, as_json: bool, raw: bool
) -> None:
    """Read the full record of one disc."""
    console = Console()
    with make_client(ctx) as client:
        result = client.get_details_by_disc_id(category, disc_id)

    if result.status == LookupStatus.FAILED:
        raise click.ClickException(result.message or "Read failed")
    if result.disc is None:
        raise click.ClickException(f"No entry for {category}/{disc_id}")

    if as_json:
        dump_json(result.disc.model_dump(mode="json"))
    elif raw:
        click.echo(result.disc.to_record().replace("\r\n", "\n"))
    else:
        print_disc_card(console, result.disc)


@main.command(name="categories")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def categories_cmd(ctx: click.Context, as_json: bool) -> None:
    """List the server's categories."""
    with make_client(ctx) as client:
        categories = client.get_categories()
    if not categories:
        raise click.ClickException("Server returned no categories")
    if as_json:
        dump_json(categories)
    else:
        for category in categories:
            click.echo(category)


@main.command(name="stat")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def stat_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show server statistics."""
    with make_client(ctx) as client:
        stats = client.statistics()
    if not stats:
        raise click.ClickException("Server returned no statistics")
    if as_json:
        dump_json(stats)
        return

    table = Table(show_header=False, padding=(0, 1))
    table.add_column("Key", style="bold cyan")
    table.add_column("Value")
    for key, value in stats.items():
        table.add_row(key.replace("_", " "), value)
    Console().print(table)


@main.command(name="sites")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def sites_cmd(ctx: click.Context, as_json: bool) -> None:
    """List the server's mirror sites."""
    with make_client(ctx) as client:
        sites = client.sites()
    if as_json:
        dump_json([site.model_dump() for site in sites])
    elif not sites:
        Console().print("[yellow]No sites listed[/yellow]")
    else:
        print_sites(Console(), sites)


@main.command(name="motd")
@click.pass_context
def motd_cmd(ctx: click.Context) -> None:
    """Show the server's message of the day."""
    with make_client(ctx) as client:
        click.echo(client.motd())


@main.command(name="ver")
@click.pass_context
def ver_cmd(ctx: click.Context) -> None:
    """Show the server's version."""
    with make_client(ctx) as client:
        click.echo(client.version())


@main.command(name="cd")
@click.option(
    "--reader",
    type=click.Choice([kind.value for kind in ReaderKind]),
    default=ReaderKind.CD_DISCID.value,
    show_default=True,
    help="Program used to read the table of contents.",
)
@click.option("--device", default="/dev/cdrom", show_default=True, help="CD device.")
@click.option("--sudo", is_flag=True, help="Run the reader through sudo.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cd_cmd(
    ctx: click.Context, reader: str, device: str, sudo: bool, as_json: bool
) -> None:
    """Read the CD in the drive and search the database for it."""
    console = Console()
    setup_logging(verbose=ctx.obj.get("verbose", False), console=console)

    config = ClientConfig(device=device, use_sudo=sudo)
    with make_client(ctx, config=config, reader=ReaderKind(reader)) as client:
        try:
            offsets, length = client.toc_for_cd()
        except CDDBError as e:
            logger.error(str(e))
            raise click.ClickException(str(e)) from e
        if not as_json:
            console.print(f"Disc ID: [bold]{compute_disc_id(offsets, length)}[/bold]")
        result = client.search_database(offsets, length)
    report_query(console, result, as_json)


@main.command(name="submit")
@click.argument("record", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--category", required=True, help="CDDB category of the record.")
@click.option("--email", envvar="CDDBKIT_EMAIL", help="Submitter email address.")
@click.option("--test", is_flag=True, help="Validate only, do not store.")
@click.pass_context
def submit_cmd(
    ctx: click.Context, record: Path, category: str, email: str | None, test: bool
) -> None:
    """Submit a record file to the submit server."""
    disc = parse_record(record.read_text(encoding="latin-1"), category)
    if not disc.disc_id.strip():
        raise click.ClickException(f"{record} has no DISCID")

    with make_client(ctx, config=ClientConfig(email=email)) as client:
        result = client.submit_disc(disc, test=test)
    if not result.accepted:
        raise click.ClickException(result.message)
    click.echo(f"Submitted {category}/{disc.disc_id.strip()}: {result.message}")


@main.command(name="import")
@click.argument(
    "root", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--database",
    default=f"sqlite:///{DB_FILE}",
    show_default=True,
    help="SQLAlchemy URL of the target database.",
)
@click.option(
    "-c", "--category", "categories", multiple=True, help="Only these categories."
)
@click.pass_context
def import_cmd(
    ctx: click.Context, root: Path, database: str, categories: tuple[str, ...]
) -> None:
    """Import a FreeDB dump directory into a SQL database.

    \b
    Examples:
      cddbkit import ./freedb --database sqlite:///cddb.db
      cddbkit import ./freedb -c rock -c jazz
    """
    console = Console()
    setup_logging(verbose=ctx.obj.get("verbose", False), console=console)

    try:
        engine = create_db_engine(database)
    except Exception as e:
        raise click.ClickException(f"Invalid database URL {database!r}: {e}") from e

    try:
        init_db(engine)
        repository = DiscRepository(engine)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed} records"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Importing", total=None)
            stats = import_directory(
                repository,
                root,
                categories or None,
                on_record=lambda category, disc: progress.advance(task),
            )
    except Exception as e:
        logger.exception("Import failed")
        raise click.ClickException(f"Import failed: {e}") from e
    finally:
        engine.dispose()

    print_import_summary(console, stats)


@main.command(name="serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", default=8000, show_default=True, help="Bind port.")
@click.option(
    "--interface",
    default="http",
    show_default=True,
    help="Interface name reported by the stat command.",
)
@click.pass_context
def serve_cmd(ctx: click.Context, host: str, port: int, interface: str) -> None:
    """Serve the CDDB HTTP interface, answering from --server."""
    import uvicorn

    from cddbkit.server.app import create_app
    from cddbkit.settings import Settings

    settings = Settings(
        backend=ctx.obj["server"],
        host=host,
        port=port,
        interface=interface,
        log_level="DEBUG" if ctx.obj.get("verbose") else "INFO",
    )
    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    main()
