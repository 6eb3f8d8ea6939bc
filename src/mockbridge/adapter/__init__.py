"""
mockbridge Adapters

Control interface for mock servers and its two implementations:
- LocalMockServerAdapter: server in the same process, direct calls
- RemoteMockServerAdapter: server in another process, admin API over HTTP
"""

from .base import MockServerAdapter, format_address
from .transport import InternalHttpClient, ADMIN_PREFIX
from .local import LocalMockServerAdapter
from .remote import RemoteMockServerAdapter

__all__ = [
    'MockServerAdapter',
    'format_address',
    'InternalHttpClient',
    'ADMIN_PREFIX',
    'LocalMockServerAdapter',
    'RemoteMockServerAdapter',
]
