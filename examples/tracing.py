# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "sdktree[otel]",
#     "opentelemetry-sdk>=1.39.1,<2.0.0",
# ]
#
# [tool.uv.sources]
# sdktree = { path = "../", editable = true }
# ///
"""Route tree + OpenTelemetry tracing demo.

Talks to an in-process fake API through ``httpx.MockTransport`` so it runs
without a server, and prints the collected client spans.
"""

import asyncio
import logging
import sys

import httpx
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from sdktree import HTTPXTransport, TransportError, create_client
from sdktree.middleware.otel import otel
from sdktree.types import RequestDescriptor, ResponseEnvelope

USERS = {"1": {"id": "1", "name": "ada"}, "2": {"id": "2", "name": "grace"}}


# --- fake api ---
def api(request: httpx.Request) -> httpx.Response:
    parts = request.url.path.strip("/").split("/")  # ["api", "v1", "users", ...]
    if parts[2:] == ["users"]:
        return httpx.Response(200, json=list(USERS.values()))
    if len(parts) == 4 and parts[2] == "users":
        user = USERS.get(parts[3])
        if user is None:
            return httpx.Response(404, json={"detail": "no such user"})
        return httpx.Response(200, json=user)
    return httpx.Response(404, json={"detail": "not found"})


# --- middleware ---
def authenticate(request: RequestDescriptor) -> RequestDescriptor:
    request.headers["authorization"] = "Bearer demo"
    return request


def unwrap_errors(response: ResponseEnvelope, succeeded: bool) -> ResponseEnvelope:
    if not succeeded:
        print(f"  ! {response.status}: {response.body}", file=sys.stderr)
    return response


# --- client setup ---
exporter = InMemorySpanExporter()
provider = TracerProvider()
provider.add_span_processor(SimpleSpanProcessor(exporter))

transport = otel(tracer_provider=provider)(
    HTTPXTransport(httpx.AsyncClient(transport=httpx.MockTransport(api)))
)
sdk = create_client(
    "https://example.com/api/v1/",
    {"accept": "application/json"},
    before_send=authenticate,
    post_request=unwrap_errors,
    transport=transport,
)
users = sdk.at("users/")
list_users = users.get()
get_user = users.get(":id")


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)

    print("--- GET users/ ---", file=sys.stderr)
    print((await list_users()).body, file=sys.stderr)

    print("--- GET users/:id ---", file=sys.stderr)
    print((await get_user({"id": 2})).body, file=sys.stderr)

    print("--- GET users/:id (missing) ---", file=sys.stderr)
    try:
        await get_user({"id": 3})
    except TransportError as e:
        print(f"  raised {e!r}", file=sys.stderr)

    provider.shutdown()
    print("--- Collected spans ---", file=sys.stderr)
    for span in exporter.get_finished_spans():
        attrs = span.attributes or {}
        print(
            f"  {span.name:<20} "
            f"status={attrs.get('http.response.status_code', ''):<4} "
            f"url={attrs['url.full']}",
            file=sys.stderr,
        )


if __name__ == "__main__":
    asyncio.run(main())
