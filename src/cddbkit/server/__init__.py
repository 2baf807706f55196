"""CDDB protocol server: request dispatcher and HTTP listener."""

from cddbkit.server.dispatcher import RequestDispatcher, as_response

__all__ = ["RequestDispatcher", "as_response"]
