"""Request/response middleware chains.

Each route node declares its own ``before_send`` and ``post_request``
functions. At request time the chains of every node from the root down to
the issuing node are concatenated, so ancestor middleware always runs before
descendant middleware, and functions declared together run in the order given.

Stages are composed, not fanned out: every stage receives the previous
stage's output. A stage may return an awaitable, which is awaited before the
next stage runs.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sdktree.errors import MiddlewareError
from sdktree.types import BeforeSend, PostRequest, RequestDescriptor, ResponseEnvelope

type MiddlewareSpec = Middleware | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Middleware:
    """Middleware declared on a single route node."""

    before_send: tuple[BeforeSend, ...] = ()
    post_request: tuple[PostRequest, ...] = ()

    def __add__(self, other: Middleware) -> Middleware:
        return Middleware(
            before_send=self.before_send + other.before_send,
            post_request=self.post_request + other.post_request,
        )

    def __bool__(self) -> bool:
        return bool(self.before_send or self.post_request)


def as_chain[F: Callable[..., Any]](fns: F | Iterable[F] | None) -> tuple[F, ...]:
    """Normalise a single function, an iterable of functions or None."""
    if fns is None:
        return ()
    if callable(fns):
        return (fns,)
    chain = tuple(fns)
    for fn in chain:
        if not callable(fn):
            msg = f"middleware must be callable, got {type(fn).__name__}"
            raise TypeError(msg)
    return chain


def middleware_from(
    declared: MiddlewareSpec | None = None,
    *,
    before_send: BeforeSend | Iterable[BeforeSend] | None = None,
    post_request: PostRequest | Iterable[PostRequest] | None = None,
) -> Middleware:
    """Build a ``Middleware`` from a mapping and/or keyword arguments.

    Mapping keys are ``before_send`` and ``post_request``; keyword functions
    are appended after the mapping's.
    """
    if declared is None:
        base = Middleware()
    elif isinstance(declared, Middleware):
        base = declared
    else:
        unknown = set(declared) - {"before_send", "post_request"}
        if unknown:
            msg = f"unknown middleware keys: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        base = Middleware(
            before_send=as_chain(declared.get("before_send")),
            post_request=as_chain(declared.get("post_request")),
        )
    return base + Middleware(
        before_send=as_chain(before_send),
        post_request=as_chain(post_request),
    )


async def run_before_send(
    chain: Iterable[BeforeSend], descriptor: RequestDescriptor
) -> RequestDescriptor:
    for stage in chain:
        result = stage(descriptor)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, RequestDescriptor):
            raise MiddlewareError(stage, "RequestDescriptor", result)
        descriptor = result
    return descriptor


async def run_post_request(
    chain: Iterable[PostRequest], envelope: ResponseEnvelope, succeeded: bool
) -> ResponseEnvelope:
    for stage in chain:
        result = stage(envelope, succeeded)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, ResponseEnvelope):
            raise MiddlewareError(stage, "ResponseEnvelope", result)
        envelope = result
    return envelope
