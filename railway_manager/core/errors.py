from __future__ import annotations
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    IO = "io"
    FORMAT = "format"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_TRACK = "invalid_track"
    INVALID_ROUTE_REQUEST = "invalid_route_request"
    NULL_INPUT = "null_input"


class RailwayError(Exception):
    """Tagged failure raised by the track model, readers and registry.

    `kind` tells callers which failure it was; `line` is only set for
    format errors raised while reading a file.
    """

    def __init__(self, kind: ErrorKind, message: str, line: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.line = line

    def __repr__(self) -> str:
        return f"RailwayError({self.kind.name}, {self.message!r})"

    def to_dict(self) -> dict:
        d = {"error": self.message, "kind": self.kind.value}
        if self.line is not None:
            d["line"] = self.line
        return d


def require(value, what: str) -> None:
    # None stands in for a missing argument
    if value is None:
        raise RailwayError(ErrorKind.NULL_INPUT, f"{what} must not be None")
