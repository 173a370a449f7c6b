"""
Transport for the REST and streaming APIs.

HTTPTransport turns a method, a URL and optional query/body into one
HTTP/1.1 exchange over a fresh connection. Every failure leaves this
module as a classified APIError.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from .classifier import classify_error
from .exceptions import HTTPCoreError
from .http11 import HTTP11Connection
from .http_primitives import QueryParams, Request, Response, build_url, encode_multipart
from .network import AsyncioNetworkBackend, NetworkBackend, format_host_header, parse_url
from .streams import create_request_stream

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fedi_http_core/0.1.0"

REDIRECT_STATUSES = (301, 302, 303, 307, 308)

# Encoded body and its Content-Type
Payload = Tuple[bytes, str]


class HTTPTransport:
    """
    Issues HTTP requests against one instance.

    A new connection is opened per request, so nothing needs to be
    released between calls.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_REDIRECTS = 5

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        backend: Optional[NetworkBackend] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ):
        """
        Initialize the transport.

        Args:
            base_url: Instance URL that relative paths are resolved against
            token: Bearer token sent with REST requests
            backend: Network backend, defaults to AsyncioNetworkBackend
            timeout: Connect, write and read timeout in seconds
            user_agent: Value of the User-Agent header
            max_redirects: Redirects followed per REST call, 0 disables following
        """
        self._base_url = base_url
        self._token = token
        self._backend = backend or AsyncioNetworkBackend()
        self._timeout = timeout
        self._user_agent = user_agent
        self._max_redirects = max_redirects

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> Optional[str]:
        return self._token

    def resolve_url(self, url: str) -> str:
        """Resolve a path against the base URL; absolute URLs pass through."""
        if urlparse(url).scheme:
            return url
        return urljoin(self._base_url, url)

    def _build_headers(
        self,
        host_header: str,
        payload: Optional[Payload],
        extra: Optional[Dict[str, str]],
        with_auth: bool,
    ) -> List[Tuple[bytes, bytes]]:
        headers: Dict[str, str] = {
            "Host": host_header,
            "User-Agent": self._user_agent,
            "Accept": "application/json",
            "Connection": "close",
        }
        if payload is not None:
            content, content_type = payload
            headers["Content-Type"] = content_type
            headers["Content-Length"] = str(len(content))
        if with_auth and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if extra:
            headers.update(extra)
        return [(name.encode(), value.encode()) for name, value in headers.items()]

    def _encode_payload(self, body: Any, form: Optional[QueryParams]) -> Optional[Payload]:
        """
        Encode the request body: ``form`` as multipart, ``body`` as JSON.

        Raises:
            APIError: If the body cannot be encoded
        """
        try:
            if form is not None:
                return encode_multipart(form)
            if body is not None:
                return json.dumps(body).encode(), "application/json"
        except (TypeError, ValueError) as e:
            raise classify_error(None, None, cause=e) from e
        return None

    def _same_instance(self, url: str) -> bool:
        return urlparse(url).netloc == urlparse(self._base_url).netloc

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[QueryParams],
        payload: Optional[Payload],
        headers: Optional[Dict[str, str]],
        read_timeout: Optional[float],
        with_auth: bool = True,
    ) -> Response:
        """Send the request and return the response with its body unread."""
        full_url = build_url(self.resolve_url(url), params)

        try:
            scheme, host, port, _ = parse_url(full_url)
            request = Request.create(
                method=method,
                url=full_url,
                headers=self._build_headers(
                    format_host_header(host, port, scheme), payload, headers, with_auth,
                ),
                stream=create_request_stream(payload[0]) if payload is not None else None,
            )

            if scheme == "https":
                stream = await self._backend.connect_tls(host, port, timeout=self._timeout)
            else:
                stream = await self._backend.connect_tcp(host, port, timeout=self._timeout)

            connection = HTTP11Connection(
                stream,
                read_timeout=read_timeout,
                write_timeout=self._timeout,
            )
            return await connection.handle_request(request)
        except (HTTPCoreError, OSError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"{method} {full_url} failed: {e}")
            raise classify_error(None, None, cause=e) from e

    async def _read_body(self, response: Response) -> Response:
        if response.stream is None:
            return response.with_content(b"")
        try:
            content = await response.stream.aread()
        except HTTPCoreError as e:
            raise classify_error(None, None, cause=e) from e
        return response.with_content(content)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[QueryParams] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        form: Optional[QueryParams] = None,
    ) -> Response:
        """
        Perform a REST call.

        Redirects are followed up to ``max_redirects`` times. A 303, or a
        301/302 answering anything but GET, is retried as a GET without
        a body. The credential is only sent to the instance's own host.

        Args:
            method: HTTP method
            url: Absolute URL or path relative to the base URL
            params: Query parameters
            body: JSON-serializable request body
            headers: Extra headers, overriding the defaults
            form: Fields sent as ``multipart/form-data`` instead of ``body``;
                  bytes and FormFile values become file parts

        Returns:
            The response with its body fully read

        Raises:
            APIError: For any status outside 2xx that is not a followed
                      redirect, or any network or encoding failure
        """
        payload = self._encode_payload(body, form)
        target = self.resolve_url(url)
        redirects = 0

        while True:
            response = await self._send(
                method, target, params, payload, headers, self._timeout,
                with_auth=self._same_instance(target),
            )
            response = await self._read_body(response)

            location = response.get_header("Location")
            if (
                response.status_code not in REDIRECT_STATUSES
                or location is None
                or redirects >= self._max_redirects
            ):
                break

            redirects += 1
            # The Location header carries the full query of the new target.
            target = urljoin(build_url(target, params), location.decode("latin-1"))
            params = None
            if response.status_code == 303 or (
                response.status_code in (301, 302) and method != "GET"
            ):
                method, payload = "GET", None
            logger.debug(f"Following {response.status_code} redirect to {target}")

        if not response.is_success:
            logger.debug(f"{method} {url} returned {response.status_code}")
            raise classify_error(response.status_code, response.json())

        return response

    async def get(self, url: str, params: Optional[QueryParams] = None, **kwargs: Any) -> Response:
        return await self.request("GET", url, params=params, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request("POST", url, body=body, **kwargs)

    async def put(self, url: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request("PUT", url, body=body, **kwargs)

    async def patch(self, url: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request("PATCH", url, body=body, **kwargs)

    async def delete(self, url: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request("DELETE", url, body=body, **kwargs)

    async def open_stream(
        self,
        url: str,
        params: Optional[QueryParams] = None,
        read_timeout: Optional[float] = None,
    ) -> Response:
        """
        Open a long-lived streaming response.

        The credential is not sent as a header here; streaming callers
        pass it in ``params``.

        Args:
            url: Absolute URL or path relative to the base URL
            params: Query parameters
            read_timeout: Longest silence tolerated between reads, None waits forever

        Returns:
            A response whose ``stream`` yields body chunks as they arrive.
            The caller owns the stream and must ``aclose`` it.

        Raises:
            APIError: If the connection fails or the status is not 2xx
        """
        response = await self._send(
            "GET",
            url,
            params,
            None,
            {"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            read_timeout,
            with_auth=False,
        )

        if not response.is_success:
            response = await self._read_body(response)
            raise classify_error(response.status_code, response.json())

        return response
