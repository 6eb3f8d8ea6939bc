"""
mockbridge Encoding Tags

String values with an optional encoding hint, used when building match
criteria. The hint is only metadata: the stored text is never transformed
here. Consumers (the request matcher, the JSON codec) read the tag and
apply the encoding themselves.

Example:
    value = url_encoded("Metallica is cool")
    value.value     # 'Metallica is cool'
    value.encoding  # Encoding.URL
"""

import base64
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote


class Encoding(Enum):
    """Encodings a tagged value may declare."""

    URL = "url"
    BASE64 = "base64"


class MaybeEncoded:
    """
    A string value with an optional encoding tag.

    Construct it with `MaybeEncoded.from_value()` (or `to_maybe_encoded()`),
    which accepts anything that renders to text through `str()`.
    """

    __slots__ = ('value', 'encoding')

    def __init__(self, value: str, encoding: Optional[Encoding] = None):
        if not isinstance(value, str):
            raise TypeError(f"MaybeEncoded value must be str, got {type(value).__name__}")
        self.value = value
        self.encoding = encoding

    @classmethod
    def from_value(cls, value: Any) -> 'MaybeEncoded':
        """Convert any text-like value, keeping the tag of an existing MaybeEncoded."""
        if isinstance(value, MaybeEncoded):
            return value.copy()
        return cls(str(value))

    def copy(self) -> 'MaybeEncoded':
        return MaybeEncoded(self.value, self.encoding)

    def url_encoded(self) -> 'MaybeEncoded':
        """Return a copy tagged as URL-encoded. The text is left as is."""
        return MaybeEncoded(self.value, Encoding.URL)

    def base64_encoded(self) -> 'MaybeEncoded':
        """Return a copy tagged as base64-encoded. The text is left as is."""
        return MaybeEncoded(self.value, Encoding.BASE64)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'encoding': self.encoding.value if self.encoding else None
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'MaybeEncoded':
        # Plain strings are accepted for hand-written payloads
        if isinstance(data, str):
            return cls(data)
        encoding = data.get('encoding')
        return cls(data['value'], Encoding(encoding) if encoding else None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaybeEncoded):
            return NotImplemented
        return self.value == other.value and self.encoding == other.encoding

    def __hash__(self) -> int:
        return hash((self.value, self.encoding))

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"MaybeEncoded({self.value!r}, encoding={self.encoding})"


def to_maybe_encoded(value: Any) -> MaybeEncoded:
    """Explicit conversion used by every API that takes a match value."""
    return MaybeEncoded.from_value(value)


def url_encoded(value: Any) -> MaybeEncoded:
    """Tag a text-like value as URL-encoded."""
    return MaybeEncoded(str(value), Encoding.URL)


def encode_for_comparison(value: MaybeEncoded) -> str:
    """
    Render a tagged value in the form it takes on the wire.

    This is the consumer side of the tag: untagged values are returned
    unchanged, tagged values are encoded so they can be compared against
    raw (undecoded) request data.

    Args:
        value: Tagged value

    Returns:
        Text to compare with the raw request bytes
    """
    if value.encoding is Encoding.URL:
        return quote(value.value, safe='')
    if value.encoding is Encoding.BASE64:
        return base64.b64encode(value.value.encode('utf-8')).decode('ascii')
    return value.value
