"""Client construction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .middleware import middleware_from
from .node import FrozenHeaders, RouteNode
from .transport import HTTPXTransport, Transport
from .types import BeforeSend, PostRequest


def create_client(
    root_url: str,
    headers: Mapping[str, object] | None = None,
    options: Mapping[str, Any] | None = None,
    *,
    before_send: BeforeSend | Iterable[BeforeSend] | None = None,
    post_request: PostRequest | Iterable[PostRequest] | None = None,
    transport: Transport | None = None,
) -> RouteNode:
    """Create the root node of a route tree.

    Args:
        root_url: Absolute url every route is relative to, e.g.
            ``"https://example.com/api/v1/"``.
        headers: Headers sent with every request.
        options: Optional mapping with ``before_send`` / ``post_request``
            keys, each a function or a list of functions.
        before_send: Root-level before_send middleware, appended after
            ``options``.
        post_request: Root-level post_request middleware, appended after
            ``options``.
        transport: Sends the requests. Defaults to ``HTTPXTransport()``.

    Example:
        api = create_client("https://example.com/api/v1/", {"accept": "application/json"})
        users = api.at("users/")
        get_user = users.get(":id/")
        response = await get_user({"id": 42})
    """
    if not root_url:
        msg = "root_url must not be empty"
        raise ValueError(msg)
    return RouteNode(
        root_url=root_url,
        transport=transport if transport is not None else HTTPXTransport(),
        headers=FrozenHeaders(headers),
        middleware=middleware_from(
            options, before_send=before_send, post_request=post_request
        ),
    )
