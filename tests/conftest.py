import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from .helpers import AsrStub


@pytest.fixture
def asr_stub() -> AsrStub:
    return AsrStub()


@pytest_asyncio.fixture
async def asr_server(asr_stub):
    app = web.Application()
    app.router.add_post("/asr", asr_stub.handle)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()
