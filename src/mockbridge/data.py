"""
mockbridge Data Model

Values exchanged between adapters and mock servers. Every type converts to
and from JSON-compatible dictionaries; the admin API transports them as
UTF-8 JSON.

Types:
- RequestRequirements: criteria a request must satisfy (mock matching and verification)
- MockServerHttpResponse: response served when a mock matches
- MockDefinition: requirements + response
- MockRef: id handed out after a mock was created
- ActiveMock: server-side record of a mock with usage statistics
- HttpMockRequest: a request recorded in the server history
- ClosestMatch / Mismatch: verification diagnostics
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from .encoding import MaybeEncoded, to_maybe_encoded

T = TypeVar('T')


class Method(Enum):
    """HTTP methods a mock can require."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    PATCH = "PATCH"

    @classmethod
    def parse(cls, value: Any) -> 'Method':
        if isinstance(value, Method):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValueError(f"Invalid HTTP method {value}") from None

    def __str__(self) -> str:
        return self.value


def _pairs(items: Optional[List[Any]]) -> Optional[List[Tuple[str, str]]]:
    if items is None:
        return None
    return [(str(name), str(value)) for name, value in items]


def _require_int(value: Any, name: str) -> int:
    # bool is an int subclass but never a valid id or counter
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{name}' must be an integer, got {value!r}")
    return value


def _optional_int(value: Any, name: str) -> Optional[int]:
    return None if value is None else _require_int(value, name)


def _optional_str(value: Any, name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{name}' must be a string, got {value!r}")
    return value


def _str_list(value: Any, name: str) -> Optional[List[str]]:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{name}' must be a list of strings, got {value!r}")
    return value


def _str_pairs(value: Any, name: str) -> Optional[List[Any]]:
    if value is None:
        return None
    valid = isinstance(value, list) and all(
        isinstance(item, (list, tuple)) and len(item) == 2 and all(isinstance(part, str) for part in item)
        for item in value
    )
    if not valid:
        raise ValueError(f"'{name}' must be a list of [name, value] string pairs, got {value!r}")
    return value


def _tagged_query_params(value: Any) -> Optional[List[Tuple[str, MaybeEncoded]]]:
    if value is None:
        return None
    valid = isinstance(value, list) and all(
        isinstance(item, dict) and isinstance(item.get('name'), str) and isinstance(item.get('value'), str)
        for item in value
    )
    if not valid:
        raise ValueError(f"'query_params' must be a list of {{name, value, encoding}} objects, got {value!r}")
    return [(item['name'], MaybeEncoded.from_dict(item)) for item in value]


@dataclass
class RequestRequirements:
    """
    Criteria an HTTP request has to satisfy.

    Every field is optional; unset fields are not checked. `matchers` holds
    plain Python callables receiving the HttpMockRequest. They only work with
    a server running in the same process and are never serialized.
    """

    method: Optional[str] = None
    path: Optional[str] = None
    path_contains: Optional[List[str]] = None
    path_matches: Optional[List[str]] = None
    headers: Optional[List[Tuple[str, str]]] = None
    header_exists: Optional[List[str]] = None
    query_params: Optional[List[Tuple[str, MaybeEncoded]]] = None
    query_param_exists: Optional[List[str]] = None
    body: Optional[str] = None
    body_contains: Optional[List[str]] = None
    body_matches: Optional[List[str]] = None
    json_body: Optional[Any] = None
    json_body_includes: Optional[List[Any]] = None
    matchers: Optional[List[Callable[['HttpMockRequest'], bool]]] = field(default=None, compare=False)

    def __post_init__(self):
        if self.method is not None:
            self.method = Method.parse(str(self.method).upper()).value
        self.headers = _pairs(self.headers)
        if self.query_params is not None:
            self.query_params = [(str(name), to_maybe_encoded(value)) for name, value in self.query_params]

    @property
    def has_matchers(self) -> bool:
        return bool(self.matchers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary. Matcher functions are left out."""
        return {
            'method': self.method,
            'path': self.path,
            'path_contains': self.path_contains,
            'path_matches': self.path_matches,
            'headers': [list(pair) for pair in self.headers] if self.headers is not None else None,
            'header_exists': self.header_exists,
            'query_params': [
                {'name': name, **value.to_dict()} for name, value in self.query_params
            ] if self.query_params is not None else None,
            'query_param_exists': self.query_param_exists,
            'body': self.body,
            'body_contains': self.body_contains,
            'body_matches': self.body_matches,
            'json_body': self.json_body,
            'json_body_includes': self.json_body_includes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RequestRequirements':
        """
        Create requirements from a dictionary.

        Raises:
            ValueError: If a field has the wrong type or the method is unknown
        """
        json_body_includes = data.get('json_body_includes')
        if json_body_includes is not None and not isinstance(json_body_includes, list):
            raise ValueError(f"'json_body_includes' must be a list, got {json_body_includes!r}")

        return cls(
            method=_optional_str(data.get('method'), 'method'),
            path=_optional_str(data.get('path'), 'path'),
            path_contains=_str_list(data.get('path_contains'), 'path_contains'),
            path_matches=_str_list(data.get('path_matches'), 'path_matches'),
            headers=_str_pairs(data.get('headers'), 'headers'),
            header_exists=_str_list(data.get('header_exists'), 'header_exists'),
            query_params=_tagged_query_params(data.get('query_params')),
            query_param_exists=_str_list(data.get('query_param_exists'), 'query_param_exists'),
            body=_optional_str(data.get('body'), 'body'),
            body_contains=_str_list(data.get('body_contains'), 'body_contains'),
            body_matches=_str_list(data.get('body_matches'), 'body_matches'),
            json_body=data.get('json_body'),
            json_body_includes=json_body_includes,
        )


@dataclass
class MockServerHttpResponse:
    """Response a mock serves when it matches."""

    status: int = 200
    headers: Optional[List[Tuple[str, str]]] = None
    body: Optional[str] = None
    delay_ms: Optional[int] = None

    def __post_init__(self):
        self.headers = _pairs(self.headers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'headers': [list(pair) for pair in self.headers] if self.headers is not None else None,
            'body': self.body,
            'delay_ms': self.delay_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockServerHttpResponse':
        delay_ms = _optional_int(data.get('delay_ms'), 'delay_ms')
        if delay_ms is not None and delay_ms < 0:
            raise ValueError(f"'delay_ms' must not be negative, got {delay_ms}")

        return cls(
            status=_require_int(data.get('status', 200), 'status'),
            headers=_str_pairs(data.get('headers'), 'headers'),
            body=_optional_str(data.get('body'), 'body'),
            delay_ms=delay_ms,
        )


@dataclass(frozen=True)
class MockDefinition:
    """A request-matching rule plus the response to emit on match."""

    request: RequestRequirements
    response: MockServerHttpResponse = field(default_factory=MockServerHttpResponse)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'request': self.request.to_dict(),
            'response': self.response.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockDefinition':
        return cls(
            request=RequestRequirements.from_dict(data['request']),
            response=MockServerHttpResponse.from_dict(data.get('response') or {}),
        )


@dataclass(frozen=True)
class MockRef:
    """Handle to a mock created on a server."""

    id: int

    def to_dict(self) -> Dict[str, Any]:
        return {'mock_id': self.id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockRef':
        return cls(id=_require_int(data['mock_id'], 'mock_id'))


@dataclass
class ActiveMock:
    """A mock stored on a server together with its usage statistics."""

    id: int
    call_counter: int
    definition: MockDefinition
    is_static: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'call_counter': self.call_counter,
            'definition': self.definition.to_dict(),
            'is_static': self.is_static,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActiveMock':
        return cls(
            id=_require_int(data['id'], 'id'),
            call_counter=_require_int(data['call_counter'], 'call_counter'),
            definition=MockDefinition.from_dict(data['definition']),
            is_static=bool(data.get('is_static', False)),
        )


@dataclass
class HttpMockRequest:
    """A request received by a mock server."""

    method: str
    path: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    query: str = ""
    query_params: List[Tuple[str, str]] = field(default_factory=list)
    body: str = ""

    def __post_init__(self):
        self.headers = _pairs(self.headers)
        self.query_params = _pairs(self.query_params)

    def header(self, name: str) -> Optional[str]:
        """Get the first header value with the given name (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'path': self.path,
            'headers': [list(pair) for pair in self.headers],
            'query': self.query,
            'query_params': [list(pair) for pair in self.query_params],
            'body': self.body,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HttpMockRequest':
        return cls(
            method=data['method'],
            path=data['path'],
            headers=data.get('headers') or [],
            query=data.get('query') or "",
            query_params=data.get('query_params') or [],
            body=data.get('body') or "",
        )


@dataclass
class Mismatch:
    """One requirement a request did not satisfy."""

    title: str
    expected: Optional[str] = None
    actual: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'title': self.title, 'expected': self.expected, 'actual': self.actual}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Mismatch':
        return cls(title=data['title'], expected=data.get('expected'), actual=data.get('actual'))


@dataclass
class ClosestMatch:
    """The recorded request that came nearest to satisfying a verification."""

    request: HttpMockRequest
    request_index: int
    mismatches: List[Mismatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'request': self.request.to_dict(),
            'request_index': self.request_index,
            'mismatches': [m.to_dict() for m in self.mismatches],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClosestMatch':
        return cls(
            request=HttpMockRequest.from_dict(data['request']),
            request_index=_require_int(data['request_index'], 'request_index'),
            mismatches=[Mismatch.from_dict(m) for m in data.get('mismatches') or []],
        )


def to_json(value: Any) -> str:
    """Serialize a model object to a JSON string."""
    return json.dumps(value.to_dict())


def from_json(model: Type[T], text: str) -> T:
    """
    Parse a JSON string into a model object.

    Raises:
        ValueError: If the text is not valid JSON or does not fit the model
    """
    data = json.loads(text)
    try:
        return model.from_dict(data)
    except (KeyError, TypeError, AttributeError) as err:
        raise ValueError(f"invalid {model.__name__} payload: {err!r}") from err
