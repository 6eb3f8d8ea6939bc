"""
mockbridge

Configure, inspect, verify and tear down programmable HTTP mock servers from
test code, whether the server runs in the same process or elsewhere.

Example:
    import asyncio
    from mockbridge import MockServer, MockDefinition, RequestRequirements, MockServerHttpResponse

    with MockServer() as server:
        adapter = server.adapter()
        definition = MockDefinition(
            request=RequestRequirements(method="GET", path="/hello"),
            response=MockServerHttpResponse(status=200, body="hi")
        )
        ref = asyncio.run(adapter.create_mock(definition))
"""

from .encoding import Encoding, MaybeEncoded, to_maybe_encoded, url_encoded
from .errors import (
    MockServerAdapterError,
    TransportError,
    UnexpectedStatusError,
    SerializationError,
    DeserializationError,
    MockValidationError,
    MockNotFoundError,
)
from .data import (
    Method,
    RequestRequirements,
    MockServerHttpResponse,
    MockDefinition,
    MockRef,
    ActiveMock,
    HttpMockRequest,
    Mismatch,
    ClosestMatch,
)
from .config import ServerConfig
from .adapter import (
    MockServerAdapter,
    InternalHttpClient,
    LocalMockServerAdapter,
    RemoteMockServerAdapter,
)
from .server.runner import MockServer, connect, wait_until_ready

__all__ = [
    # Encoding
    'Encoding',
    'MaybeEncoded',
    'to_maybe_encoded',
    'url_encoded',

    # Errors
    'MockServerAdapterError',
    'TransportError',
    'UnexpectedStatusError',
    'SerializationError',
    'DeserializationError',
    'MockValidationError',
    'MockNotFoundError',

    # Data
    'Method',
    'RequestRequirements',
    'MockServerHttpResponse',
    'MockDefinition',
    'MockRef',
    'ActiveMock',
    'HttpMockRequest',
    'Mismatch',
    'ClosestMatch',

    # Config
    'ServerConfig',

    # Adapters
    'MockServerAdapter',
    'InternalHttpClient',
    'LocalMockServerAdapter',
    'RemoteMockServerAdapter',

    # Servers
    'MockServer',
    'connect',
    'wait_until_ready',
]

__version__ = '1.0.0'
