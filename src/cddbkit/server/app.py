"""FastAPI application serving the CDDB HTTP (CGI) interface.

Clients send one request per command list::

    GET /~cddb/cddb.cgi?cmd=cddb+lscat&hello=joe+my.host.com+xmcd+2.1&proto=5

and get plain protocol text back::

    210 OK, category list follows (until terminating `.')
    blues
    rock
    .
"""

import asyncio
import logging
import threading
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from rich.console import Console
from rich.logging import RichHandler

from cddbkit.backends import create_backend
from cddbkit.config import CLIENT_VERSION
from cddbkit.exceptions import CDDBError
from cddbkit.server.dispatcher import INTERNAL_ERROR, RequestDispatcher
from cddbkit.settings import Settings, get_settings

logger = logging.getLogger(__name__)

CGI_PATH = "/~cddb/cddb.cgi"


def setup_logging(settings: Settings) -> None:
    """Configure logging with Rich handler for all loggers including uvicorn."""
    console = Console(force_terminal=True)
    handler = RichHandler(
        console=console, rich_tracebacks=True, show_path=False, markup=True
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))

    logging.root.handlers = [handler]
    logging.root.setLevel(settings.log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False


def decode_commands(params: Mapping[str, str]) -> list[str]:
    """Turn CGI parameters into the command list of one request.

    All of ``cmd``, ``hello`` and ``proto`` are required. A request missing
    any of them decodes to an empty list.
    """
    cmd = params.get("cmd", "").strip()
    hello = params.get("hello", "").strip()
    proto = params.get("proto", "").strip()
    if not (cmd and hello and proto):
        return []
    return [f"cddb hello {hello}", f"proto {proto}", cmd]


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""

    @app.exception_handler(CDDBError)
    async def cddb_error_handler(request: Request, exc: CDDBError) -> PlainTextResponse:
        logger.error("Request failed: %s", exc.message)
        return PlainTextResponse(INTERNAL_ERROR.render(), status_code=exc.status_code)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the backend and dispatcher, and disconnect on shutdown."""
    settings: Settings = app.state.settings
    backend = create_backend(settings.backend_config())
    app.state.dispatcher = RequestDispatcher(backend, interface=settings.interface)
    app.state.lock = threading.Lock()
    logger.info("Serving CDDB requests from %s", type(backend).__name__)

    yield

    if backend.connected():
        backend.disconnect()
    logger.info("Backend disconnected")


def create_app(
    settings: Settings | None = None, dispatcher: RequestDispatcher | None = None
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Server settings. Defaults to the cached environment settings.
        dispatcher: Prebuilt dispatcher. Skips backend creation from settings.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="cddbkit",
        description="CDDB protocol server",
        version=CLIENT_VERSION,
        lifespan=lifespan if dispatcher is None else None,
    )
    app.state.settings = settings
    if dispatcher is not None:
        app.state.dispatcher = dispatcher
        app.state.lock = threading.Lock()

    register_exception_handlers(app)

    @app.api_route(CGI_PATH, methods=["GET", "POST"], response_class=PlainTextResponse)
    async def cddb_cgi(request: Request) -> PlainTextResponse:
        params = dict(request.query_params)
        if request.method == "POST":
            form = await request.form()
            params.update({key: str(value) for key, value in form.items()})

        commands = decode_commands(params)
        dispatcher: RequestDispatcher = request.app.state.dispatcher
        lock: threading.Lock = request.app.state.lock

        def run() -> str:
            with lock:
                responses = dispatcher.dispatch(commands)
            return "".join(response.render() for response in responses)

        return PlainTextResponse(await asyncio.to_thread(run))

    return app
