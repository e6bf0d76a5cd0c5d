"""Values threaded through a request invocation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Verb(Enum):
    """HTTP methods a route node can issue.

    GET sends residual params as the query string, POST/PUT/PATCH as the body,
    DELETE drops them.
    """

    GET = "GET"  # Retrieve the target.
    POST = "POST"  # Perform target-specific processing with the request payload.
    PUT = "PUT"  # Replace the target with the request payload.
    PATCH = "PATCH"  # Apply partial modifications to a target.
    DELETE = "DELETE"  # Remove the target.

    def __repr__(self) -> str:
        return str(self.value)


@dataclass(slots=True)
class RequestDescriptor:
    """What the before_send chain sees and may rewrite.

    ``path`` is still a template (``service/:uuid/``); substitution happens
    after the whole chain has run.
    """

    params: dict[str, Any]
    path: str
    headers: dict[str, str]


@dataclass(frozen=True, slots=True)
class SentRequest:
    """The request as handed to the transport."""

    method: str
    url: str  # absolute, without query string
    path: str  # url path component, e.g. "/api/v1/service/"
    template: str = ""  # path template before substitution, e.g. "service/:uuid/"
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] | None = None
    body: Mapping[str, Any] | None = None


@dataclass(slots=True)
class ResponseEnvelope:
    """What the post_request chain sees and what the caller finally gets."""

    status: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)
    request: SentRequest | None = None

    @property
    def req(self) -> SentRequest | None:
        return self.request

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


type BeforeSend = Callable[
    [RequestDescriptor], RequestDescriptor | Awaitable[RequestDescriptor]
]
type PostRequest = Callable[
    [ResponseEnvelope, bool], ResponseEnvelope | Awaitable[ResponseEnvelope]
]
