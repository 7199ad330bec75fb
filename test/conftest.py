from typing import AsyncGenerator, Tuple

import pytest_asyncio
from status_server import DeploymentStatusServer

TOKEN = "test-token"
BASE_URL_TEMPLATE = "http://localhost:{}"


@pytest_asyncio.fixture
async def server(
    unused_tcp_port_factory,
) -> AsyncGenerator[Tuple[DeploymentStatusServer, str], None]:
    """Start a fake status server on a random port and yield it with its base url."""
    port = unused_tcp_port_factory()
    server_instance = DeploymentStatusServer(token=TOKEN)
    await server_instance.start(port=port)
    try:
        yield server_instance, BASE_URL_TEMPLATE.format(port)
    finally:
        await server_instance.stop()
