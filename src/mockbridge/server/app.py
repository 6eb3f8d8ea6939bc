"""
mockbridge Server Application

FastAPI application exposing the admin API under /__httpmock__ and serving
mocked responses for every other path.

Admin API:
- GET    /__httpmock__/ping        -> 200
- POST   /__httpmock__/mocks       -> 201 {"mock_id": n}
- GET    /__httpmock__/mocks/{id}  -> 200 active mock | 404
- DELETE /__httpmock__/mocks/{id}  -> 202 | 404
- DELETE /__httpmock__/mocks       -> 202
- POST   /__httpmock__/verify      -> 200 closest match | 404
- DELETE /__httpmock__/history     -> 202
"""

import asyncio
import json
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from ..adapter.transport import ADMIN_PREFIX
from ..data import HttpMockRequest, MockDefinition, RequestRequirements
from .handlers import (
    add_new_mock,
    delete_all_mocks,
    delete_history,
    delete_one_mock,
    find_mock_for_request,
    read_one_mock,
    verify,
)
from .state import MockOrigin, MockServerState

logger = logging.getLogger("mockbridge.server")

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH"]


def _text(content: str, status_code: int) -> Response:
    return Response(content=content, status_code=status_code, media_type="text/plain")


async def _read_json(request: Request, parse):
    """Parse the request body with `parse`, returning (value, error response)."""
    try:
        data = json.loads(await request.body())
        return parse(data), None
    except (ValueError, KeyError, TypeError, AttributeError) as err:
        return None, _text(f"Cannot deserialize request body: {err}", 400)


async def to_mock_request(request: Request) -> HttpMockRequest:
    """Convert an incoming request into the recorded form."""
    body = await request.body()
    return HttpMockRequest(
        method=request.method,
        path=request.url.path,
        headers=list(request.headers.items()),
        query=request.url.query,
        query_params=list(request.query_params.multi_items()),
        body=body.decode('utf-8', errors='replace')
    )


def create_app(state: MockServerState) -> FastAPI:
    """
    Create the FastAPI application for a server state.

    Args:
        state: State the app reads and modifies

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="mockbridge mock server",
        description="Programmable HTTP mock server",
        version="1.0.0"
    )

    @app.get(f"{ADMIN_PREFIX}/ping")
    async def ping():
        return Response(status_code=200)

    @app.post(f"{ADMIN_PREFIX}/mocks")
    async def create_mock(request: Request):
        definition, error = await _read_json(request, MockDefinition.from_dict)
        if error is not None:
            return error

        try:
            mock_id = add_new_mock(state, definition, MockOrigin.DYNAMIC)
        except ValueError as err:
            return _text(str(err), 400)

        return JSONResponse(content={'mock_id': mock_id}, status_code=201)

    @app.get(f"{ADMIN_PREFIX}/mocks/{{mock_id}}")
    async def fetch_mock(mock_id: int):
        mock = read_one_mock(state, mock_id)
        if mock is None:
            return _text(f"Cannot find mock with id {mock_id}", 404)
        return JSONResponse(content=mock.to_dict())

    @app.delete(f"{ADMIN_PREFIX}/mocks/{{mock_id}}")
    async def delete_mock(mock_id: int):
        if not delete_one_mock(state, mock_id):
            return _text(f"Cannot find mock with id {mock_id}", 404)
        return Response(status_code=202)

    @app.delete(f"{ADMIN_PREFIX}/mocks")
    async def delete_mocks():
        delete_all_mocks(state)
        return Response(status_code=202)

    @app.post(f"{ADMIN_PREFIX}/verify")
    async def verify_requests(request: Request):
        requirements, error = await _read_json(request, RequestRequirements.from_dict)
        if error is not None:
            return error

        try:
            closest = verify(state, requirements)
        except ValueError as err:
            return _text(str(err), 400)

        if closest is None:
            return Response(status_code=404)
        return JSONResponse(content=closest.to_dict())

    @app.delete(f"{ADMIN_PREFIX}/history")
    async def clear_history():
        delete_history(state)
        return Response(status_code=202)

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def serve_mock(request: Request, path: str):
        """Serve the response of the first mock matching the request."""
        mock_request = await to_mock_request(request)
        logger.debug(f"Incoming: {mock_request.method} {mock_request.path}")

        mock_response = find_mock_for_request(state, mock_request)
        if mock_response is None:
            return _text("Request did not match any route or mock", 404)

        if mock_response.delay_ms:
            await asyncio.sleep(mock_response.delay_ms / 1000)

        response = Response(content=mock_response.body or "", status_code=mock_response.status)
        for name, value in mock_response.headers or []:
            response.headers.append(name, value)
        return response

    return app
