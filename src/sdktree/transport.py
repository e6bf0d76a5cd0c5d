"""Transports put a ``SentRequest`` on the wire.

The route tree never talks HTTP itself; it hands a fully resolved request to
a ``Transport`` and gets a ``ResponseEnvelope`` back. Non-2xx responses are
raised as ``TransportError`` carrying the envelope so the post_request chain
can still see them.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .errors import TransportError
from .types import ResponseEnvelope, SentRequest

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send(self, request: SentRequest) -> ResponseEnvelope: ...


class HTTPXTransport:
    """Default transport backed by ``httpx.AsyncClient``.

    Args:
        client: Client to send through, owned and closed by the caller. If
            None, a short-lived client is opened per request.
        timeout: Timeout for the short-lived clients, in seconds.
    """

    __slots__ = ("_client", "_timeout")

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = 10.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def send(self, request: SentRequest) -> ResponseEnvelope:
        if self._client is not None:
            return await self._send(self._client, request)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, request)

    async def _send(
        self, client: httpx.AsyncClient, request: SentRequest
    ) -> ResponseEnvelope:
        try:
            response = await client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                params=_query_params(request.query),
                json=request.body,
            )
        except httpx.HTTPError as e:
            logger.debug("%s %s failed: %s", request.method, request.url, e)
            msg = f"{request.method} {request.url} failed: {e}"
            raise TransportError(msg) from e

        envelope = ResponseEnvelope(
            status=response.status_code,
            body=_decode_body(response),
            headers=dict(response.headers),
            request=request,
        )
        logger.debug("%s %s -> %d", request.method, request.url, envelope.status)
        if not response.is_success:
            msg = f"{response.status_code} {response.reason_phrase}"
            raise TransportError(msg, response=envelope)
        return envelope


def _query_params(query: Any) -> dict[str, str | list[str]] | None:
    if not query:
        return None
    return {
        k: [_query_value(i) for i in v]
        if isinstance(v, list | tuple)
        else _query_value(v)
        for k, v in query.items()
    }


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            logger.debug("undecodable json body, keeping text")
    return response.text
