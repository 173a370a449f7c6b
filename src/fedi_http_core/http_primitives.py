"""
Request and response values, plus the query-string and multipart form
encodings the REST API expects.

Requests and responses are frozen dataclasses; a response read in full
is replaced by a copy holding its ``content``.
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterable,
    Dict,
    List,
    Iterator,
    Mapping,
    Optional,
    NamedTuple,
    Tuple,
    Union,
)
from urllib.parse import urlencode, urlsplit, urlunsplit

from .network.utils import parse_url

Headers = List[Tuple[bytes, bytes]]
URL = Tuple[bytes, bytes, int, bytes]  # (scheme, host, port, target)
StatusCode = int
QueryParams = Mapping[str, Any]


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Optional[QueryParams]) -> str:
    """
    Encode query parameters the way the REST API expects them.

    ``None`` values are dropped, booleans become ``true``/``false`` and
    sequences are sent as repeated ``key[]`` pairs.

    Args:
        params: Mapping of parameter names to values

    Returns:
        The encoded query string, without the leading ``?``
    """
    if not params:
        return ""

    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((f"{key}[]", _encode_value(item)) for item in value)
        else:
            pairs.append((key, _encode_value(value)))

    return urlencode(pairs)


class FormFile(NamedTuple):
    """A file part of a multipart form, e.g. an avatar image."""
    content: bytes
    filename: str = "file"
    content_type: str = "application/octet-stream"


def _form_fields(key: str, value: Any) -> Iterator[Tuple[str, Any]]:
    """Flatten nested form values into Rails-style ``a[b]`` / ``a[]`` names."""
    if value is None:
        return
    if isinstance(value, FormFile):
        yield key, value
    elif isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            yield from _form_fields(f"{key}[{sub_key}]", sub_value)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            # e.g. fields_attributes[0][name]
            name = f"{key}[{index}]" if isinstance(item, Mapping) else f"{key}[]"
            yield from _form_fields(name, item)
    elif isinstance(value, (bytes, bytearray)):
        yield key, FormFile(bytes(value), filename=key)
    else:
        yield key, value


def encode_multipart(
    fields: QueryParams,
    boundary: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Encode a form as ``multipart/form-data``.

    Raw bytes and FormFile values become file parts, nested mappings and
    lists are flattened the way the REST API reads them, ``None`` values
    are dropped.

    Returns:
        ``(body, content_type)``, the content type carrying the boundary
    """
    boundary = boundary or uuid.uuid4().hex
    parts: List[bytes] = []

    for key, value in fields.items():
        for name, item in _form_fields(key, value):
            if isinstance(item, FormFile):
                head = (
                    f'Content-Disposition: form-data; name="{name}"; '
                    f'filename="{item.filename}"\r\n'
                    f"Content-Type: {item.content_type}\r\n"
                )
                data = item.content
            else:
                head = f'Content-Disposition: form-data; name="{name}"\r\n'
                data = _encode_value(item).encode("utf-8")
            parts.append(f"--{boundary}\r\n{head}\r\n".encode("utf-8") + data + b"\r\n")

    parts.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(parts), f"multipart/form-data; boundary={boundary}"


def build_url(url: str, params: Optional[QueryParams] = None) -> str:
    """
    Append encoded query parameters to a URL.

    Parameters already present in ``url`` are kept; new ones are appended.
    """
    query = encode_query(params)
    if not query:
        return url

    parts = urlsplit(url)
    merged = f"{parts.query}&{query}" if parts.query else query
    return urlunsplit((parts.scheme, parts.netloc, parts.path, merged, parts.fragment))


@dataclass(frozen=True)
class Request:
    """A request ready to be written to a connection."""

    method: bytes
    url: URL
    headers: Headers = field(default_factory=list)
    stream: Optional[AsyncIterable[bytes]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, bytes):
            raise ValueError("method must be bytes")

        if not isinstance(self.url, tuple) or len(self.url) != 4:
            raise ValueError("url must be a 4-tuple (scheme, host, port, target)")

        for name, value in self.headers:
            if not isinstance(name, bytes) or not isinstance(value, bytes):
                raise ValueError("header names and values must be bytes")

    @classmethod
    def create(
        cls,
        method: Union[str, bytes],
        url: Union[str, URL],
        headers: Optional[Headers] = None,
        stream: Optional[AsyncIterable[bytes]] = None,
    ) -> "Request":
        """
        Build a request from an absolute URL string or a URL tuple.

        Raises:
            ValueError: If the URL is not an absolute http(s) URL
        """
        if isinstance(method, str):
            method = method.encode()

        if isinstance(url, str):
            scheme, host, port, target = parse_url(url)
            url = (scheme.encode(), host.encode(), port, target.encode())

        return cls(method=method, url=url, headers=list(headers or []), stream=stream)

    @property
    def scheme(self) -> bytes:
        return self.url[0]

    @property
    def host(self) -> bytes:
        return self.url[1]

    @property
    def port(self) -> int:
        return self.url[2]

    @property
    def target(self) -> bytes:
        """Path plus query string, as sent on the request line."""
        return self.url[3]


@dataclass(frozen=True)
class Response:
    """
    A received response.

    The body is either still on the wire as ``stream`` (event streams)
    or already read into ``content`` (REST calls).
    """

    status_code: StatusCode
    headers: Headers = field(default_factory=list)
    stream: Optional[AsyncIterable[bytes]] = None
    content: Optional[bytes] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")

        for name, value in self.headers:
            if not isinstance(name, bytes) or not isinstance(value, bytes):
                raise ValueError("header names and values must be bytes")

    @classmethod
    def create(
        cls,
        status_code: StatusCode,
        headers: Optional[Headers] = None,
        stream: Optional[AsyncIterable[bytes]] = None,
        extensions: Optional[Dict[str, Any]] = None,
    ) -> "Response":
        return cls(
            status_code=status_code,
            headers=list(headers or []),
            stream=stream,
            extensions=dict(extensions or {}),
        )

    def with_content(self, content: bytes) -> "Response":
        """Copy of this response holding the fully read body."""
        return Response(
            status_code=self.status_code,
            headers=self.headers,
            stream=None,
            content=content,
            extensions=self.extensions,
        )

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """First value of a header, matched case-insensitively."""
        if isinstance(name, str):
            name = name.encode()

        name = name.lower()
        for header_name, header_value in self.headers:
            if header_name.lower() == name:
                return header_value
        return None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        if not self.content:
            return ""
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """
        Parse the body.

        Returns:
            The decoded JSON value, the raw text if the body is not JSON,
            or None for an empty body
        """
        text = self.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text
