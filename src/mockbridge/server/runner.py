"""
mockbridge Server Runner

Starts mock servers and hands out adapters for them.

- MockServer.start(): runs the app with uvicorn in a background thread of the
  current process; adapter() returns a LocalMockServerAdapter.
- MockServer.serve_forever(): runs a standalone server in the foreground.
- connect(): returns a RemoteMockServerAdapter for a server elsewhere.

Example:
    with MockServer().start() as server:
        adapter = server.adapter()
        ref = asyncio.run(adapter.create_mock(definition))
"""

import asyncio
import logging
import socket
import threading
import time
from typing import Optional

import uvicorn

from ..adapter.base import MockServerAdapter
from ..adapter.local import LocalMockServerAdapter
from ..adapter.remote import RemoteMockServerAdapter
from ..adapter.transport import InternalHttpClient
from ..config import ServerConfig
from ..errors import MockServerAdapterError
from .app import create_app
from .state import MockServerState
from .static_mocks import load_static_mocks

logger = logging.getLogger("mockbridge.server")


def _http_client(config: ServerConfig) -> InternalHttpClient:
    return InternalHttpClient(keepalive_seconds=config.keepalive_seconds, timeout=config.request_timeout)


class MockServer:
    """
    A mock server owned by the current process.

    Example:
        server = MockServer(ServerConfig(port=5000)).start()
        ...
        server.stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None, state: Optional[MockServerState] = None):
        """
        Initialize server.

        Args:
            config: Server configuration (defaults to an ephemeral port on 127.0.0.1)
            state: Existing state to serve (a new one if None)
        """
        self.config = config or ServerConfig()
        self.state = state or MockServerState()

        if self.config.static_mock_path is not None:
            load_static_mocks(self.state, self.config.static_mock_path)

        self.app = create_app(self.state)
        self.addr = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ':' in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.config.host, self.config.port))
        return sock

    def start(self, startup_timeout: float = 10.0) -> 'MockServer':
        """
        Start serving in a background thread.

        Args:
            startup_timeout: Seconds to wait for uvicorn to come up

        Returns:
            self, with `addr` set to the bound (host, port)

        Raises:
            RuntimeError: If the server is already running or does not start in time
        """
        if self._thread is not None:
            raise RuntimeError("Mock server already started")

        sock = self._bind()
        self.addr = tuple(sock.getsockname()[:2])

        uv_config = uvicorn.Config(self.app, log_level=self.config.log_level, access_log=False)
        self._server = uvicorn.Server(uv_config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={'sockets': [sock]},
            name=f"mockbridge-{self.addr[1]}",
            daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise RuntimeError(f"Mock server did not start on {self.addr[0]}:{self.addr[1]}")
            time.sleep(0.01)

        logger.info(f"Mock server listening on {self.addr[0]}:{self.addr[1]}")
        return self

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background server. Safe to call more than once."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
        self._server = None
        self._thread = None

    def adapter(self, http_client: Optional[InternalHttpClient] = None) -> LocalMockServerAdapter:
        """Create an in-process adapter for this server (server must be started)."""
        if self.addr is None:
            raise RuntimeError("Mock server not started")
        return LocalMockServerAdapter(self.addr, self.state, http_client or _http_client(self.config))

    def serve_forever(self) -> None:
        """Run the server in the foreground until interrupted."""
        print("mockbridge mock server starting...")
        print(f"   Host: {self.config.host}:{self.config.port}")
        print(f"   Static mocks: {len(self.state.mocks)}")
        print()

        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level
        )

    def __enter__(self) -> 'MockServer':
        if self._thread is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def connect(config: Optional[ServerConfig] = None) -> RemoteMockServerAdapter:
    """
    Create an adapter for a standalone server.

    Args:
        config: Address and transport settings (defaults to MOCKBRIDGE_* environment variables)

    Returns:
        RemoteMockServerAdapter
    """
    config = config or ServerConfig.from_env()
    if config.port == 0:
        raise ValueError("A port is required to connect to a remote mock server")
    return RemoteMockServerAdapter((config.host, config.port), _http_client(config))


async def wait_until_ready(adapter: MockServerAdapter, timeout: float = 10.0, interval: float = 0.1) -> None:
    """
    Poll ping() until the server answers.

    Raises:
        MockServerAdapterError: The last ping failure, once `timeout` has passed
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        try:
            await adapter.ping()
            return
        except MockServerAdapterError as err:
            if loop.time() >= deadline:
                raise
            logger.debug(f"Mock server at {adapter.address()} not ready: {err}")
        await asyncio.sleep(interval)
