"""Server-side dispatch of decoded CDDB commands to a backend."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from cddbkit.backends.base import Backend, Reply, split_command
from cddbkit.config import CLIENT_NAME, CLIENT_VERSION
from cddbkit.exceptions import BackendError
from cddbkit.models.enums import HookKind, ResponseCode
from cddbkit.models.results import Response

logger = logging.getLogger(__name__)

RequestHook = Callable[[list[str]], Any]
CommandHook = Callable[[str], Any]
ResponseHook = Callable[[str, Response], Any]

INTERNAL_ERROR = Response(ResponseCode.SERVER_ERROR, "Internal server error.")

_Handler = Callable[[str, list[str]], Response | None]


def as_response(value: Any) -> Response | None:
    """Turn a hook's return value into a Response.

    Only a 4-item tuple (status, message, data, terminated) counts. Any
    other value means the hook let processing continue.
    """
    if isinstance(value, Response):
        return value
    if isinstance(value, tuple) and len(value) == 4:
        status, message, data, terminated = value
        return Response(int(status), str(message), str(data or ""), bool(terminated))
    return None


class RequestDispatcher:
    """Answer decoded CDDB commands from a backend.

    Three ordered hook lists run around the fixed command table. The first
    hook in a list that returns a 4-tuple decides the response for its
    stage and no later hook in that list runs:

    - request hooks get the full command list and can answer the whole
      request with one response,
    - command hooks get each command and can answer it instead of the
      command table,
    - response hooks get each command with its response and can replace it.

    Example:
        >>> dispatcher = RequestDispatcher(backend)
        >>> dispatcher.register_hook(HookKind.COMMAND, block_stat)
        >>> for response in dispatcher.dispatch(["cddb lscat"]):
        ...     print(response.render())
    """

    def __init__(self, backend: Backend, interface: str = "http") -> None:
        self._backend = backend
        self.interface = interface
        self.request_hooks: list[RequestHook] = []
        self.command_hooks: list[CommandHook] = []
        self.response_hooks: list[ResponseHook] = []
        self._handlers: dict[str, _Handler] = {
            "cddb lscat": self._lscat,
            "cddb hello": self._no_response,
            "cddb query": self._query,
            "proto": self._no_response,
            "cddb read": self._read,
            "motd": self._motd,
            "ver": self._ver,
            "stat": self._stat,
        }

    @property
    def backend(self) -> Backend:
        return self._backend

    def register_hook(
        self, kind: HookKind, hook: RequestHook | CommandHook | ResponseHook
    ) -> None:
        """Append a hook to the list for its stage."""
        match HookKind(kind):
            case HookKind.REQUEST:
                self.request_hooks.append(hook)
            case HookKind.COMMAND:
                self.command_hooks.append(hook)
            case HookKind.RESPONSE:
                self.response_hooks.append(hook)

    def dispatch(self, commands: Sequence[str]) -> list[Response]:
        """Answer every command of one request, in order."""
        commands = list(commands)
        for hook in self.request_hooks:
            if (response := as_response(hook(commands))) is not None:
                return [response]

        if not commands:
            return [
                Response(
                    ResponseCode.ERROR_SYNTAX,
                    "Command syntax error: incorrect number of arguments.",
                )
            ]

        responses = []
        for command in commands:
            response = self._dispatch_command(command)
            if response is not None:
                responses.append(response)
        return responses

    def _dispatch_command(self, command: str) -> Response | None:
        for hook in self.command_hooks:
            if (response := as_response(hook(command))) is not None:
                return self._after_response(command, response)

        name, args = split_command(command)
        if not name:
            response = Response(ResponseCode.ERROR_EMPTY, "Empty command input.")
        elif (handler := self._handlers.get(name)) is None:
            response = Response(ResponseCode.ERROR_UNRECOGNIZED, "Unrecognized command.")
        else:
            try:
                handled = handler(name, args)
            except BackendError as e:
                logger.warning("Backend error for %r: %s", command, e.message)
                handled = INTERNAL_ERROR
            if handled is None:
                return None
            response = handled

        logger.debug("%r -> %d %s", command, response.status, response.message)
        return self._after_response(command, response)

    def _after_response(self, command: str, response: Response) -> Response:
        for hook in self.response_hooks:
            if (replaced := as_response(hook(command, response))) is not None:
                return replaced
        return response

    def _forward(self, command: str) -> Reply:
        self._backend.send(command)
        return Reply(
            self._backend.status(), self._backend.message(), self._backend.receive()
        )

    # -- command handlers --------------------------------------------------

    def _no_response(self, name: str, args: list[str]) -> None:
        return None

    def _lscat(self, name: str, args: list[str]) -> Response:
        reply = self._forward("cddb lscat")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return INTERNAL_ERROR
        return Response(
            reply.status,
            "OK, category list follows (until terminating `.')",
            reply.body,
            True,
        )

    def _query(self, name: str, args: list[str]) -> Response:
        reply = self._forward(" ".join([name, *args]))
        match reply.status:
            case ResponseCode.OK:
                return Response(reply.status, reply.body)
            case ResponseCode.OK_INEXACT:
                return Response(
                    reply.status,
                    "Found inexact matches, list follows (until terminating `.')",
                    reply.body,
                    True,
                )
            case ResponseCode.OK_FOLLOWS:
                return Response(
                    reply.status,
                    "Found exact matches, list follows (until terminating `.')",
                    reply.body,
                    True,
                )
            case ResponseCode.OK_NOMATCH:
                return Response(reply.status, "No match found.")
        return INTERNAL_ERROR

    def _read(self, name: str, args: list[str]) -> Response:
        query = " ".join(args)
        reply = self._forward(f"{name} {query}")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return INTERNAL_ERROR
        return Response(
            reply.status,
            f"{query} CD database entry follows (until terminating `.')",
            reply.body,
            True,
        )

    def _motd(self, name: str, args: list[str]) -> Response:
        reply = self._forward("motd")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return INTERNAL_ERROR
        message = reply.message
        if not message.startswith("Last modified:"):
            message = (
                f"Last modified: {datetime.now():%m/%d/%Y %H:%M:%S} "
                "MOTD follows (until terminating `.')"
            )
        return Response(reply.status, message, reply.body, True)

    def _ver(self, name: str, args: list[str]) -> Response:
        reply = self._forward("ver")
        if reply.status != ResponseCode.OK:
            return INTERNAL_ERROR
        message = reply.body.strip()
        if self._backend.is_remote():
            message += (
                f" (Tunnelled through {CLIENT_NAME}/{type(self).__name__}"
                f" v{CLIENT_VERSION})"
            )
        return Response(reply.status, message)

    def _stat(self, name: str, args: list[str]) -> Response:
        reply = self._forward("stat")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return INTERNAL_ERROR
        lines = [
            f"    interface: {self.interface}"
            if line.split(":", 1)[0].strip() == "interface"
            else line
            for line in reply.body.split("\n")
        ]
        return Response(
            reply.status,
            "OK, status information follows (until terminating `.')",
            "\n".join(lines).strip(),
            True,
        )
