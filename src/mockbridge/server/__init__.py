"""
mockbridge Server

The mock server the adapters control: state, request matching, handler
functions and the FastAPI application. Starting servers lives in
mockbridge.server.runner.
"""

from .state import MockServerState, MockOrigin

__all__ = [
    'MockServerState',
    'MockOrigin',
]
