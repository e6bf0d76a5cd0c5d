"""Immutable route tree.

Every node owns a path fragment, headers and middleware, and keeps a
back-reference to its parent. Nothing is merged at construction time:
headers, middleware and the full path are folded root-to-leaf by walking
parent links when a request is built, so ordering is always ancestor first.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Never

from .middleware import Middleware, MiddlewareSpec, middleware_from
from .request import RequestFactory
from .template import PathTemplate, compile_template, join_paths
from .types import BeforeSend, PostRequest, Verb

if TYPE_CHECKING:
    from .transport import Transport


class FrozenHeaders(dict[str, str]):
    """Read-only header mapping; names and values are stored as str."""

    def __init__(self, headers: Mapping[str, object] | None = None) -> None:
        super().__init__((str(k), str(v)) for k, v in (headers or {}).items())

    def _read_only(self, *args, **kwargs) -> Never:
        msg = "route headers are immutable, pass new ones to at() instead"
        raise TypeError(msg)

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only


@dataclass(frozen=True, slots=True, eq=False)
class RouteNode:
    """A node in the route tree.

    Use ``at()`` to derive children and the verb methods to build request
    factories. Nodes are never mutated; ``at()`` always returns a new node.
    """

    root_url: str
    transport: Transport
    pattern: str = ""
    headers: FrozenHeaders = field(default_factory=FrozenHeaders)
    middleware: Middleware = field(default_factory=Middleware)
    parent: RouteNode | None = field(default=None, repr=False)
    template: PathTemplate = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # compile eagerly so a malformed pattern fails where it is declared
        object.__setattr__(self, "template", compile_template(self.pattern))

    def at(
        self,
        pattern: str = "",
        headers: Mapping[str, object] | None = None,
        middleware: MiddlewareSpec | None = None,
        *,
        before_send: BeforeSend | Iterable[BeforeSend] | None = None,
        post_request: PostRequest | Iterable[PostRequest] | None = None,
    ) -> RouteNode:
        """Derive a child node at ``pattern`` relative to this node."""
        return RouteNode(
            root_url=self.root_url,
            transport=self.transport,
            pattern=pattern,
            headers=FrozenHeaders(headers),
            middleware=middleware_from(
                middleware, before_send=before_send, post_request=post_request
            ),
            parent=self,
        )

    def lineage(self) -> Iterator[RouteNode]:
        """Yield the nodes from the root down to this one."""
        nodes: list[RouteNode] = []
        node: RouteNode | None = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        return reversed(nodes)

    def full_pattern(self) -> str:
        """Path template relative to the root url, nothing substituted."""
        return join_paths(*(node.pattern for node in self.lineage()))

    def merged_headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        """Root headers overridden by each descendant's, then by ``extra``."""
        merged: dict[str, str] = {}
        for node in self.lineage():
            merged.update(node.headers)
        if extra:
            merged.update(extra)
        return merged

    def chain(self) -> Middleware:
        """Middleware of every node from the root down, in declaration order."""
        chain = Middleware()
        for node in self.lineage():
            if node.middleware:
                chain += node.middleware
        return chain

    def url(self) -> str:
        """Absolute url of this node with params left unsubstituted."""
        return join_paths(self.root_url, self.full_pattern())

    def request(
        self,
        verb: Verb,
        pattern: str = "",
        headers: Mapping[str, object] | None = None,
    ) -> RequestFactory:
        """Build a request factory for ``verb``. No I/O happens here."""
        return RequestFactory(
            node=self,
            verb=verb,
            pattern=pattern,
            headers=FrozenHeaders(headers),
        )

    def get(
        self, pattern: str = "", headers: Mapping[str, object] | None = None
    ) -> RequestFactory:
        """Factory for GET; residual params go to the query string."""
        return self.request(Verb.GET, pattern, headers)

    def post(
        self, pattern: str = "", headers: Mapping[str, object] | None = None
    ) -> RequestFactory:
        """Factory for POST; residual params go to the JSON body."""
        return self.request(Verb.POST, pattern, headers)

    def put(
        self, pattern: str = "", headers: Mapping[str, object] | None = None
    ) -> RequestFactory:
        """Factory for PUT; residual params go to the JSON body."""
        return self.request(Verb.PUT, pattern, headers)

    def patch(
        self, pattern: str = "", headers: Mapping[str, object] | None = None
    ) -> RequestFactory:
        """Factory for PATCH; residual params go to the JSON body."""
        return self.request(Verb.PATCH, pattern, headers)

    def delete(
        self, pattern: str = "", headers: Mapping[str, object] | None = None
    ) -> RequestFactory:
        """Factory for DELETE; residual params are dropped."""
        return self.request(Verb.DELETE, pattern, headers)
