"""
Tests for the raw HTTP passthrough, against an in-process aiohttp server.

Tests cover:
- GET/POST bodies passed through untouched
- Error statuses returned as plain bodies
- Connection failures as TransportError
"""
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from secure_storage.exceptions import TransportError
from secure_storage.transport import HttpTransport

BLOB = bytes(range(256))


@pytest_asyncio.fixture
async def server():
    async def blob(request):
        return web.Response(body=BLOB)

    async def echo(request):
        return web.Response(body=await request.read())

    async def fail(request):
        return web.Response(status=500, body=b"\x00boom\xff")

    app = web.Application()
    app.router.add_get("/blob", blob)
    app.router.add_post("/echo", echo)
    app.router.add_get("/fail", fail)
    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest_asyncio.fixture
async def transport():
    client = HttpTransport(timeout=5)
    yield client
    await client.close()


class TestHttpTransport:
    """get_raw / post_raw without payload transformation."""

    @pytest.mark.asyncio
    async def test_get_raw(self, server, transport):
        """Test get_raw returns the response body unchanged."""
        assert await transport.get_raw(str(server.make_url("/blob"))) == BLOB

    @pytest.mark.asyncio
    async def test_post_raw_echo(self, server, transport):
        """Test post_raw sends and returns binary bodies unchanged."""
        body = b"\x00\xff binary \x10"
        assert await transport.post_raw(str(server.make_url("/echo")), body) == body

    @pytest.mark.asyncio
    async def test_error_status_body_passes_through(self, server, transport):
        """Test a 500 response body is returned as-is."""
        assert await transport.get_raw(str(server.make_url("/fail"))) == b"\x00boom\xff"

    @pytest.mark.asyncio
    async def test_missing_route_body_passes_through(self, server, transport):
        """Test a 404 response still yields its body."""
        body = await transport.get_raw(str(server.make_url("/nope")))
        assert b"404" in body

    @pytest.mark.asyncio
    async def test_connection_refused(self, server, transport):
        """Test an unreachable server raises TransportError."""
        url = str(server.make_url("/blob"))
        await server.close()
        with pytest.raises(TransportError):
            await transport.get_raw(url)

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, server):
        """Test leaving async with closes the client session."""
        async with HttpTransport() as client:
            await client.get_raw(str(server.make_url("/blob")))
        assert client._session is None
