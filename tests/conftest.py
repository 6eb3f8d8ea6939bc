"""
Shared fixtures for mockbridge tests.
"""

import json

import httpx
import pytest

from mockbridge.adapter.remote import RemoteMockServerAdapter
from mockbridge.adapter.transport import InternalHttpClient
from mockbridge.data import MockDefinition, MockServerHttpResponse, RequestRequirements


class RecordingTransport:
    """
    httpx transport double answering with queued (status, body) pairs.

    Every request is recorded in `requests`. A queued exception is raised
    instead of answering.
    """

    def __init__(self):
        self.requests = []
        self.responses = []

    def respond(self, status, body=""):
        if not isinstance(body, str):
            body = json.dumps(body)
        self.responses.append((status, body))
        return self

    def fail(self, exception):
        self.responses.append(exception)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")

        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer

        status, body = answer
        return httpx.Response(status, text=body)

    def client(self) -> InternalHttpClient:
        return InternalHttpClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def recorder():
    """Recording transport double."""
    return RecordingTransport()


@pytest.fixture
def remote_adapter(recorder):
    """Remote adapter talking to the recording double."""
    return RemoteMockServerAdapter(("127.0.0.1", 5000), recorder.client())


@pytest.fixture
def get_x_definition():
    """Mock definition for GET /x."""
    return MockDefinition(
        request=RequestRequirements(method="GET", path="/x"),
        response=MockServerHttpResponse(status=200, body="hello")
    )
