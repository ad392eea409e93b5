import asyncio
import gzip

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from cors_relay.config import Settings
from cors_relay.server import create_app

BINARY_PAYLOAD = bytes(range(256)) * 4096
GZIP_TEXT = b"compressed upstream body " * 100
TRICKLE_CHUNK = b"0123456789"


async def echo(request: web.Request) -> web.Response:
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "path": request.path,
            "query": request.query_string,
            "raw_path": request.raw_path,
            "headers": {k.lower(): v for k, v in request.headers.items()},
            "body": body.decode("utf-8", errors="replace"),
        }
    )


async def raw_echo(request: web.Request) -> web.Response:
    body = await request.read()
    return web.Response(body=body, content_type=request.content_type)


async def data(request: web.Request) -> web.Response:
    return web.json_response(
        {"items": [1, 2, 3]},
        status=203,
        headers={
            "ETag": '"v1"',
            "X-Custom": "yes",
            "Proxy-Authenticate": "Basic",
            "Access-Control-Allow-Origin": "https://upstream.example",
        },
    )


async def exposed(request: web.Request) -> web.Response:
    return web.Response(text="ok", headers={"Access-Control-Expose-Headers": "X-Custom"})


async def binary(request: web.Request) -> web.Response:
    return web.Response(body=BINARY_PAYLOAD, content_type="image/png")


async def gzipped(request: web.Request) -> web.Response:
    return web.Response(
        body=gzip.compress(GZIP_TEXT),
        headers={"Content-Encoding": "gzip", "Content-Type": "text/plain"},
    )


async def set_cookie(request: web.Request) -> web.Response:
    response = web.Response(text="cookie set")
    response.set_cookie("session", "secret")
    return response


async def missing(request: web.Request) -> web.Response:
    return web.json_response({"message": "not here"}, status=404)


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.Response(text="late")


async def trickle(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse()
    response.content_length = len(TRICKLE_CHUNK) * 4
    await response.prepare(request)
    for _ in range(4):
        await response.write(TRICKLE_CHUNK)
        await asyncio.sleep(0.2)
    await response.write_eof()
    return response


async def truncated(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse()
    response.content_length = 100
    await response.prepare(request)
    await response.write(b"x" * 10)
    await asyncio.sleep(0.1)
    request.transport.close()
    return response


def make_upstream_app() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/echo", echo)
    app.router.add_route("*", "/raw", raw_echo)
    app.router.add_get("/data", data)
    app.router.add_get("/exposed", exposed)
    app.router.add_get("/binary", binary)
    app.router.add_get("/gzip", gzipped)
    app.router.add_get("/set-cookie", set_cookie)
    app.router.add_get("/missing", missing)
    app.router.add_get("/slow", slow)
    app.router.add_get("/trickle", trickle)
    app.router.add_get("/truncated", truncated)
    return app


@pytest_asyncio.fixture
async def upstream():
    """A real aiohttp server the relay forwards to."""
    server = TestServer(make_upstream_app())
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def relay_factory():
    """Build relay test clients with per-test settings."""
    clients: list[TestClient] = []

    async def factory(**overrides) -> TestClient:
        settings = Settings(**{"allowlist": None, **overrides})
        client = TestClient(TestServer(create_app(settings)))
        await client.start_server()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


@pytest_asyncio.fixture
async def relay(relay_factory):
    return await relay_factory()
