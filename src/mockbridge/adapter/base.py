"""
mockbridge Adapter Contract

The operations test code uses to control a mock server. Two implementations
exist: LocalMockServerAdapter talks to a server in the same process,
RemoteMockServerAdapter talks to a server over its admin API. Code using an
adapter should only depend on this class.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..data import ActiveMock, ClosestMatch, MockDefinition, MockRef, RequestRequirements


def format_address(host: str, port: int) -> str:
    """Render host and port as host:port, bracketing IPv6 hosts."""
    if ':' in host and not host.startswith('['):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class MockServerAdapter(ABC):
    """
    Control interface of a mock server.

    All coroutine methods raise MockServerAdapterError (or a subclass) on
    failure. The only non-error "absent" outcome is verify() returning None.
    """

    def __init__(self, addr: Tuple[str, int]):
        self.addr = addr

    def host(self) -> str:
        return self.addr[0]

    def port(self) -> int:
        return self.addr[1]

    def address(self) -> str:
        return format_address(self.addr[0], self.addr[1])

    @abstractmethod
    async def create_mock(self, mock: MockDefinition) -> MockRef:
        """Store a mock on the server and return its reference."""

    @abstractmethod
    async def fetch_mock(self, mock_id: int) -> ActiveMock:
        """Read a stored mock with its call statistics."""

    @abstractmethod
    async def delete_mock(self, mock_id: int) -> None:
        """Delete one mock."""

    @abstractmethod
    async def delete_all_mocks(self) -> None:
        """Delete all mocks created at runtime."""

    @abstractmethod
    async def verify(self, requirements: RequestRequirements) -> Optional[ClosestMatch]:
        """
        Look for the recorded request closest to satisfying `requirements`.

        Returns:
            ClosestMatch describing the nearest non-matching request, or None
            when there is nothing to report
        """

    @abstractmethod
    async def delete_history(self) -> None:
        """Forget all recorded requests."""

    @abstractmethod
    async def ping(self) -> None:
        """Check that the server is reachable over HTTP."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address()})"
