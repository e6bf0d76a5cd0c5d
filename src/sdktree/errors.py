"""sdktree exception hierarchy.

Everything raised by the compiler, the resolver, the middleware pipeline and
the transports derives from ``SdkTreeError``. Exceptions raised *inside* user
middleware are never wrapped: they reach the caller unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import ResponseEnvelope


class SdkTreeError(Exception):
    """Base for all sdktree-specific errors."""


class TemplateSyntaxError(SdkTreeError, ValueError):
    """Raised when a path template cannot be compiled."""

    def __init__(self, pattern: str, position: int, reason: str) -> None:
        self.pattern = pattern
        self.position = position
        self.reason = reason
        super().__init__(f"{reason} at position {position} in {pattern!r}")


class MissingParameterError(SdkTreeError, LookupError):
    """A required path parameter has no value.

    The message format is part of the public contract.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"no values provided for key `{key}`")


class MiddlewareError(SdkTreeError, TypeError):
    """A middleware stage returned something other than what the chain expects."""

    def __init__(self, stage: object, expected: str, got: object) -> None:
        self.stage = stage
        name = getattr(stage, "__qualname__", repr(stage))
        super().__init__(
            f"middleware {name} returned {type(got).__name__}, expected {expected}"
        )


class TransportError(SdkTreeError):
    """The transport failed to get a successful response.

    ``response`` is set for HTTP error statuses. A transport raises with
    ``None`` when nothing was received (connection refused, timeout);
    dispatch then substitutes a status 0 envelope before post_request runs.
    """

    def __init__(self, message: str, response: ResponseEnvelope | None = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status(self) -> int | None:
        return self.response.status if self.response is not None else None
