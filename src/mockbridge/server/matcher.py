"""
mockbridge Request Matcher

Checks recorded requests against RequestRequirements and measures how far a
non-matching request is from satisfying them.

Mismatches are collected instead of failing fast so verification can report
every unmet requirement of the closest request. The distance of a request is
the sum of (1 - similarity) over its mismatches, similarity being the
difflib ratio of expected and actual text.
"""

import json
import logging
import re
from difflib import SequenceMatcher
from typing import Any, List, Optional, Sequence, Tuple

from ..data import HttpMockRequest, Mismatch, RequestRequirements
from ..encoding import encode_for_comparison

logger = logging.getLogger("mockbridge.server")


def validate_requirements(requirements: RequestRequirements) -> None:
    """
    Check that all regular expressions in `requirements` compile.

    Raises:
        ValueError: On the first invalid pattern
    """
    for pattern in (requirements.path_matches or []) + (requirements.body_matches or []):
        try:
            re.compile(pattern)
        except re.error as err:
            raise ValueError(f"Invalid regular expression {pattern!r}: {err}") from err


def _raw_query_pairs(query: str) -> List[Tuple[str, str]]:
    """Split a query string into (name, value) without decoding anything."""
    pairs = []
    for part in query.split('&'):
        if not part:
            continue
        name, _, value = part.partition('=')
        pairs.append((name, value))
    return pairs


def _json_includes(actual: Any, expected: Any) -> bool:
    """True if `expected` is contained in `actual` (dict keys recursively, list items anywhere)."""
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return False
        return all(k in actual and _json_includes(actual[k], v) for k, v in expected.items())
    if isinstance(expected, list):
        if not isinstance(actual, list):
            return False
        return all(any(_json_includes(a, e) for a in actual) for e in expected)
    return actual == expected


def _parse_json(text: str) -> Optional[Any]:
    try:
        return json.loads(text) if text else None
    except ValueError:
        return None


def get_mismatches(requirements: RequestRequirements, request: HttpMockRequest) -> List[Mismatch]:
    """
    List every requirement `request` does not satisfy.

    Args:
        requirements: Criteria to check
        request: Recorded request

    Returns:
        Mismatches, empty if the request matches
    """
    rr = requirements
    mismatches: List[Mismatch] = []

    if rr.method is not None and rr.method != request.method.upper():
        mismatches.append(Mismatch("Method", rr.method, request.method))

    if rr.path is not None and rr.path != request.path:
        mismatches.append(Mismatch("Path", rr.path, request.path))

    for part in rr.path_contains or []:
        if part not in request.path:
            mismatches.append(Mismatch("Path contains", part, request.path))

    for pattern in rr.path_matches or []:
        if not re.search(pattern, request.path):
            mismatches.append(Mismatch("Path matches", pattern, request.path))

    for name, value in rr.headers or []:
        actual = request.header(name)
        if actual != value:
            mismatches.append(Mismatch(f"Header '{name}'", value, actual))

    for name in rr.header_exists or []:
        if request.header(name) is None:
            mismatches.append(Mismatch("Header exists", name, None))

    if rr.query_params:
        decoded = request.query_params
        raw = _raw_query_pairs(request.query)
        for name, tagged in rr.query_params:
            if tagged.encoding is None:
                candidates = [v for k, v in decoded if k == name]
                expected = tagged.value
            else:
                # Tagged values are compared in their encoded form against the raw query
                candidates = [v for k, v in raw if k == name]
                expected = encode_for_comparison(tagged)
            if expected not in candidates:
                actual = candidates[0] if candidates else None
                mismatches.append(Mismatch(f"Query parameter '{name}'", expected, actual))

    names = {k for k, _ in request.query_params}
    for name in rr.query_param_exists or []:
        if name not in names:
            mismatches.append(Mismatch("Query parameter exists", name, None))

    if rr.body is not None and rr.body != request.body:
        mismatches.append(Mismatch("Body", rr.body, request.body))

    for part in rr.body_contains or []:
        if part not in request.body:
            mismatches.append(Mismatch("Body contains", part, request.body))

    for pattern in rr.body_matches or []:
        if not re.search(pattern, request.body):
            mismatches.append(Mismatch("Body matches", pattern, request.body))

    if rr.json_body is not None or rr.json_body_includes:
        actual_json = _parse_json(request.body)

        if rr.json_body is not None and actual_json != rr.json_body:
            mismatches.append(Mismatch("JSON body", json.dumps(rr.json_body), request.body))

        for partial in rr.json_body_includes or []:
            if not _json_includes(actual_json, partial):
                mismatches.append(Mismatch("JSON body includes", json.dumps(partial), request.body))

    for index, matcher in enumerate(rr.matchers or []):
        try:
            matched = matcher(request)
        except Exception as err:
            # A failing user function counts as "does not match"
            logger.warning(f"Custom matcher #{index} raised {err!r}")
            mismatches.append(Mismatch("Custom matcher", f"matcher #{index} returns true", f"raised {err!r}"))
            continue
        if not matched:
            mismatches.append(Mismatch("Custom matcher", f"matcher #{index} returns true", "false"))

    return mismatches


def request_matches(requirements: RequestRequirements, request: HttpMockRequest) -> bool:
    return not get_mismatches(requirements, request)


def distance(mismatches: Sequence[Mismatch]) -> float:
    """Distance of a request from its requirements, 0.0 meaning a full match."""
    total = 0.0
    for mismatch in mismatches:
        similarity = SequenceMatcher(None, mismatch.expected or '', mismatch.actual or '').ratio()
        total += 1.0 - similarity
    return total


def find_closest(
    requirements: RequestRequirements,
    history: Sequence[HttpMockRequest]
) -> Optional[Tuple[int, List[Mismatch]]]:
    """
    Find the recorded request nearest to `requirements`.

    Returns:
        (index, mismatches) of the closest non-matching request, or None when
        any request matches or the history is empty. Ties go to the earliest request.
    """
    best: Optional[Tuple[int, List[Mismatch]]] = None
    best_distance = 0.0

    for index, request in enumerate(history):
        mismatches = get_mismatches(requirements, request)
        if not mismatches:
            return None

        current = distance(mismatches)
        if best is None or current < best_distance:
            best = (index, mismatches)
            best_distance = current

    return best
