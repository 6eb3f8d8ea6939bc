"""
mockbridge Server Handlers

Operations on a MockServerState. The FastAPI app and the in-process adapter
both call these functions, so a local and a standalone server behave the
same.
"""

import copy
import dataclasses
import logging
from typing import Optional

from ..data import ActiveMock, ClosestMatch, HttpMockRequest, MockDefinition, MockServerHttpResponse, RequestRequirements
from .matcher import find_closest, request_matches, validate_requirements
from .state import MockOrigin, MockServerState

logger = logging.getLogger("mockbridge.server")


def _copy_definition(definition: MockDefinition) -> MockDefinition:
    """Deep copy of a definition. Matcher callables are shared, not copied."""
    memo = {id(matcher): matcher for matcher in definition.request.matchers or []}
    return copy.deepcopy(definition, memo)


def add_new_mock(state: MockServerState, definition: MockDefinition, origin: MockOrigin) -> int:
    """
    Store a new mock.

    Args:
        state: Server state
        definition: Mock to store
        origin: Whether the mock is created at runtime or loaded at startup

    Returns:
        The id of the new mock

    Raises:
        ValueError: If the definition contains an invalid regular expression
    """
    # Later changes to the caller's definition must not reach the stored mock
    definition = _copy_definition(definition)
    validate_requirements(definition.request)

    with state.lock:
        mock_id = state.create_new_id()
        state.mocks[mock_id] = ActiveMock(
            id=mock_id,
            call_counter=0,
            definition=definition,
            is_static=origin is MockOrigin.STATIC
        )

    logger.debug(f"Added {origin.value} mock {mock_id}")
    return mock_id


def read_one_mock(state: MockServerState, mock_id: int) -> Optional[ActiveMock]:
    """Return a snapshot of the mock, or None if it does not exist."""
    with state.lock:
        mock = state.mocks.get(mock_id)
        if mock is None:
            return None
        return dataclasses.replace(mock, definition=_copy_definition(mock.definition))


def delete_one_mock(state: MockServerState, mock_id: int) -> bool:
    """Delete a mock. Returns False if there was no mock with this id."""
    with state.lock:
        deleted = state.mocks.pop(mock_id, None) is not None

    logger.debug(f"Delete mock {mock_id}: {'done' if deleted else 'not found'}")
    return deleted


def delete_all_mocks(state: MockServerState) -> None:
    """Delete all dynamic mocks. Static mocks stay."""
    with state.lock:
        state.mocks = {k: v for k, v in state.mocks.items() if v.is_static}


def delete_history(state: MockServerState) -> None:
    with state.lock:
        state.history.clear()


def verify(state: MockServerState, requirements: RequestRequirements) -> Optional[ClosestMatch]:
    """
    Find the recorded request closest to satisfying `requirements`.

    Returns:
        ClosestMatch for the nearest non-matching request. None if a recorded
        request matches or nothing was recorded.

    Raises:
        ValueError: If the requirements contain an invalid regular expression
    """
    validate_requirements(requirements)

    with state.lock:
        history = list(state.history)

    closest = find_closest(requirements, history)
    if closest is None:
        return None

    index, mismatches = closest
    return ClosestMatch(request=history[index], request_index=index, mismatches=mismatches)


def find_mock_for_request(state: MockServerState, request: HttpMockRequest) -> Optional[MockServerHttpResponse]:
    """
    Record a request and select the response of the first matching mock.

    The matching mock's call counter is incremented.

    Returns:
        Response to serve, or None if no mock matches
    """
    with state.lock:
        state.history.append(request)
        candidates = sorted(state.mocks.values(), key=lambda m: m.id)

    for mock in candidates:
        if request_matches(mock.definition.request, request):
            with state.lock:
                # The mock may have been deleted meanwhile
                if mock.id in state.mocks:
                    state.mocks[mock.id].call_counter += 1
            return mock.definition.response

    logger.warning(f"No mock matched {request.method} {request.path}")
    return None
