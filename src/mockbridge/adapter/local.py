"""
mockbridge Local Adapter

Controls a mock server running in the same process by calling its handler
functions directly. Only ping() goes over HTTP, so it still proves the
server socket is reachable.
"""

from typing import Optional, Tuple

from ..data import ActiveMock, ClosestMatch, MockDefinition, MockRef, RequestRequirements
from ..errors import MockNotFoundError, MockValidationError
from ..server.handlers import (
    add_new_mock,
    delete_all_mocks,
    delete_history,
    delete_one_mock,
    read_one_mock,
    verify,
)
from ..server.state import MockOrigin, MockServerState
from .base import MockServerAdapter
from .transport import InternalHttpClient


class LocalMockServerAdapter(MockServerAdapter):
    """
    Adapter sharing the state object of an in-process server.

    Several adapters may share one MockServerState.
    """

    def __init__(
        self,
        addr: Tuple[str, int],
        local_state: MockServerState,
        http_client: Optional[InternalHttpClient] = None
    ):
        super().__init__(addr)
        self.local_state = local_state
        self.http_client = http_client or InternalHttpClient()

    async def create_mock(self, mock: MockDefinition) -> MockRef:
        try:
            mock_id = add_new_mock(self.local_state, mock, MockOrigin.DYNAMIC)
        except ValueError as err:
            raise MockValidationError(str(err)) from err
        return MockRef(mock_id)

    async def fetch_mock(self, mock_id: int) -> ActiveMock:
        mock = read_one_mock(self.local_state, mock_id)
        if mock is None:
            raise MockNotFoundError("Cannot find mock")
        return mock

    async def delete_mock(self, mock_id: int) -> None:
        if not delete_one_mock(self.local_state, mock_id):
            raise MockNotFoundError("Mock could not be deleted")

    async def delete_all_mocks(self) -> None:
        delete_all_mocks(self.local_state)

    async def verify(self, requirements: RequestRequirements) -> Optional[ClosestMatch]:
        try:
            return verify(self.local_state, requirements)
        except ValueError as err:
            raise MockValidationError(str(err)) from err

    async def delete_history(self) -> None:
        delete_history(self.local_state)

    async def ping(self) -> None:
        await self.http_client.http_ping(self.address())
