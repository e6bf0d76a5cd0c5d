"""Deferred request factories.

``node.get("items/:id/")`` builds a ``RequestFactory`` without doing any I/O.
Awaiting the factory with params runs, in order: the before_send chain, path
resolution, the transport, and the post_request chain.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from .errors import TransportError
from .middleware import run_before_send, run_post_request
from .template import Resolution, compile_template, join_paths, resolve
from .types import RequestDescriptor, ResponseEnvelope, SentRequest, Verb

if TYPE_CHECKING:
    from .node import RouteNode

logger = logging.getLogger(__name__)

_BODY_VERBS = frozenset({Verb.POST, Verb.PUT, Verb.PATCH})


@dataclass(frozen=True, slots=True, eq=False)
class RequestFactory:
    """Reusable, parameterisable request bound to a route node and verb.

    Each call is independent: params and headers are copied per invocation,
    so the same factory can be awaited concurrently.
    """

    node: RouteNode
    verb: Verb
    pattern: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    path: str = field(init=False)

    def __post_init__(self) -> None:
        path = join_paths(self.node.full_pattern(), self.pattern)
        compile_template(path)  # surface syntax errors before any invocation
        object.__setattr__(self, "path", path)

    async def __call__(
        self, params: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> ResponseEnvelope:
        """Send the request.

        Raises:
            MissingParameterError: a required path param has no value. Raised
                before anything is sent.
            TransportError: the request failed. ``response`` holds the
                envelope as returned by the post_request chain; when no response
                was received the chain is given one with status 0.
            Exception: whatever a middleware stage raised, unchanged.
        """
        chain = self.node.chain()
        descriptor = RequestDescriptor(
            params={**(params or {}), **kwargs},
            path=self.path,
            headers=self.node.merged_headers(self.headers),
        )
        descriptor = await run_before_send(chain.before_send, descriptor)

        request = self._build(
            descriptor.path,
            resolve(descriptor.path, descriptor.params),
            descriptor.headers,
        )
        logger.debug("%s %s", request.method, request.url)
        try:
            envelope = await self.node.transport.send(request)
        except TransportError as e:
            failed = e.response
            if failed is None:
                # no response received, the chain still sees the failure
                failed = ResponseEnvelope(status=0, body=None, request=request)
            e.response = await run_post_request(chain.post_request, failed, False)
            raise
        return await run_post_request(chain.post_request, envelope, True)

    invoke = __call__

    def _build(
        self, template: str, resolution: Resolution, headers: Mapping[str, Any]
    ) -> SentRequest:
        url = join_paths(self.node.root_url, resolution.path)
        residual = resolution.residual or None
        return SentRequest(
            method=self.verb.value,
            url=url,
            path=urlsplit(url).path,
            template=template,
            headers={str(k): str(v) for k, v in headers.items()},
            query=residual if self.verb is Verb.GET else None,
            body=residual if self.verb in _BODY_VERBS else None,
        )
