"""
mockbridge Remote Adapter

Controls a mock server running in another process through its admin API.
"""

import logging
from typing import Optional, Tuple, Type, TypeVar

from ..data import ActiveMock, ClosestMatch, MockDefinition, MockRef, RequestRequirements, from_json, to_json
from ..errors import DeserializationError, MockValidationError, SerializationError, UnexpectedStatusError
from .base import MockServerAdapter
from .transport import ADMIN_PREFIX, InternalHttpClient

T = TypeVar('T')

JSON_HEADERS = {'content-type': 'application/json'}

logger = logging.getLogger("mockbridge.adapter")


def _serialize(value, what: str) -> str:
    try:
        return to_json(value)
    except (TypeError, ValueError) as err:
        raise SerializationError(f"Cannot serialize {what} to JSON: {err}") from err


def _deserialize(model: Type[T], body: str) -> T:
    try:
        return from_json(model, body)
    except ValueError as err:
        raise DeserializationError(f"Cannot deserialize mock server response: {err}") from err


class RemoteMockServerAdapter(MockServerAdapter):
    """
    Adapter for a standalone mock server reachable over the network.

    Example:
        adapter = RemoteMockServerAdapter(("127.0.0.1", 5000))
        await adapter.ping()
        ref = await adapter.create_mock(definition)
    """

    def __init__(self, addr: Tuple[str, int], http_client: Optional[InternalHttpClient] = None):
        """
        Initialize adapter.

        Args:
            addr: (host, port) of the mock server
            http_client: Transport to use (a new pooled client if None)
        """
        super().__init__(addr)
        self.http_client = http_client or InternalHttpClient()

    def _url(self, path: str) -> str:
        return f"http://{self.address()}{ADMIN_PREFIX}{path}"

    def validate_mock(self, mock: MockDefinition) -> None:
        """Reject definitions that cannot be sent over HTTP."""
        if mock.request.has_matchers:
            raise MockValidationError(
                "Anonymous function request matchers are not supported when using a remote mock server"
            )

    async def create_mock(self, mock: MockDefinition) -> MockRef:
        # Must fail before anything is sent
        self.validate_mock(mock)

        payload = _serialize(mock, "mock object")
        status, body = await self.http_client.execute_request(
            "POST", self._url("/mocks"), headers=JSON_HEADERS, body=payload
        )

        if status != 201:
            raise UnexpectedStatusError(
                f"Could not create mock. Mock server response: status = {status}, message = {body}",
                status,
                body
            )

        ref = _deserialize(MockRef, body)
        logger.debug(f"Created mock {ref.id} on {self.address()}")
        return ref

    async def fetch_mock(self, mock_id: int) -> ActiveMock:
        status, body = await self.http_client.execute_request("GET", self._url(f"/mocks/{mock_id}"))

        if status != 200:
            raise UnexpectedStatusError(
                f"Could not fetch mock from server (status = {status}, message = {body})",
                status,
                body
            )

        return _deserialize(ActiveMock, body)

    async def delete_mock(self, mock_id: int) -> None:
        status, body = await self.http_client.execute_request("DELETE", self._url(f"/mocks/{mock_id}"))

        if status != 202:
            raise UnexpectedStatusError(
                f"Could not delete mock from server (status = {status}, message = {body})",
                status,
                body
            )

    async def delete_all_mocks(self) -> None:
        status, body = await self.http_client.execute_request("DELETE", self._url("/mocks"))

        if status != 202:
            raise UnexpectedStatusError(
                f"Could not delete mocks from server (status = {status}, message = {body})",
                status,
                body
            )

    async def verify(self, requirements: RequestRequirements) -> Optional[ClosestMatch]:
        payload = _serialize(requirements, "verification request")
        status, body = await self.http_client.execute_request(
            "POST", self._url("/verify"), headers=JSON_HEADERS, body=payload
        )

        # 404 is the regular "nothing to report" answer
        if status == 404:
            return None

        if status != 200:
            raise UnexpectedStatusError(
                f"Could not execute verification (status = {status}, message = {body})",
                status,
                body
            )

        return _deserialize(ClosestMatch, body)

    async def delete_history(self) -> None:
        status, body = await self.http_client.execute_request("DELETE", self._url("/history"))

        if status != 202:
            raise UnexpectedStatusError(
                f"Could not delete history from server (status = {status}, message = {body})",
                status,
                body
            )

    async def ping(self) -> None:
        await self.http_client.http_ping(self.address())
