"""
mockbridge Server State

Storage of mocks and request history for one mock server instance. The
state is shared between the HTTP server thread and in-process adapters, so
every access goes through `lock`.
"""

import threading
from enum import Enum
from typing import Dict, List

from ..data import ActiveMock, HttpMockRequest


class MockOrigin(Enum):
    """Where a mock was created."""

    # Created at runtime through an adapter or the admin API
    DYNAMIC = "dynamic"
    # Loaded from a static mock file at startup; survives delete_all_mocks
    STATIC = "static"


class MockServerState:
    """Mocks, request history and the id sequence of one server."""

    def __init__(self):
        self.lock = threading.Lock()
        self.mocks: Dict[int, ActiveMock] = {}
        self.history: List[HttpMockRequest] = []
        self._id_counter = 0

    def create_new_id(self) -> int:
        """Next mock id. Ids are never reused. Caller must hold `lock`."""
        mock_id = self._id_counter
        self._id_counter += 1
        return mock_id
