"""Pytest configuration and shared fixtures."""

import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

# Add src to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from reader_sync.gateway.client import OldReaderGateway
from reader_sync.session.store import TokenStore
from reader_sync.sync.engine import SyncEngine

from fakes import API_REQUESTS, VALID_TOKEN, FakeGateway, build_api_app, build_canned_app


@pytest.fixture
def temp_db():
    """Provide a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield f"sqlite:///{db_path}"
    # Cleanup
    try:
        os.unlink(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture
def token_store(temp_db):
    """Token store backed by a temporary database."""
    return TokenStore(temp_db)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def routes():
    """Navigation requests emitted by the engine."""
    return []


@pytest.fixture
def engine(fake_gateway, token_store, routes):
    """Engine with a stored token and a scripted gateway."""
    token_store.save(VALID_TOKEN)
    return SyncEngine(fake_gateway, token_store, on_navigate=routes.append)


@pytest_asyncio.fixture
async def api_server():
    """Running fake API server."""
    server = TestServer(build_api_app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def api_requests(api_server):
    """Requests recorded by the fake API server."""
    return api_server.app[API_REQUESTS]


@pytest_asyncio.fixture
async def gateway(api_server):
    """Real gateway pointed at the fake API server."""
    async with OldReaderGateway(base_url=str(api_server.make_url("/"))) as gw:
        yield gw


@pytest_asyncio.fixture
async def canned_gateway():
    """Factory for a gateway pointed at a server with canned responses."""
    servers = []
    gateways = []

    async def make(responses):
        server = TestServer(build_canned_app(responses))
        await server.start_server()
        servers.append(server)
        gw = OldReaderGateway(base_url=str(server.make_url("/")))
        await gw.__aenter__()
        gateways.append(gw)
        return gw

    yield make

    for gw in gateways:
        await gw.__aexit__(None, None, None)
    for server in servers:
        await server.close()
