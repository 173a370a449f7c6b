"""
High level client.

Wires a ClientConfig to a transport, the account endpoints and the
streaming channels.
"""

import logging
from typing import Any, Optional

from .accounts import AccountRepository
from .config import ClientConfig
from .http_primitives import QueryParams
from .network import NetworkBackend
from .paginator import Paginator
from .session import StreamSession
from .transport import HTTPTransport

logger = logging.getLogger(__name__)


class StreamingChannels:
    """Factories for the event streams an instance offers."""

    def __init__(self, transport: HTTPTransport, config: ClientConfig):
        self._transport = transport
        self._config = config

    def _session(self, path: str, params: Optional[QueryParams] = None) -> StreamSession:
        return StreamSession(
            self._transport,
            self._config.resolved_streaming_url.rstrip("/") + path,
            params=params,
            token=self._config.token,
            reconnect_interval=self._config.reconnect_interval,
            max_reconnect_attempts=self._config.max_reconnect_attempts,
            read_timeout=self._config.stream_read_timeout,
        )

    def user(self) -> StreamSession:
        """Home timeline and notifications of the authorized user."""
        return self._session("/api/v1/streaming/user")

    def public(self, local: bool = False, only_media: bool = False) -> StreamSession:
        path = "/api/v1/streaming/public"
        if local:
            path += "/local"
        return self._session(path, {"only_media": True} if only_media else None)

    def hashtag(self, tag: str, local: bool = False) -> StreamSession:
        path = "/api/v1/streaming/hashtag"
        if local:
            path += "/local"
        return self._session(path, {"tag": tag})

    def list(self, list_id: str) -> StreamSession:
        return self._session("/api/v1/streaming/list", {"list": list_id})

    def direct(self) -> StreamSession:
        return self._session("/api/v1/streaming/direct")


class Client:
    """
    Entry point for one instance and one credential.

    Example:
        async with Client(ClientConfig(url="https://mastodon.example", token=token)) as client:
            async for page in client.accounts.list_followers("1"):
                ...
    """

    def __init__(self, config: ClientConfig, backend: Optional[NetworkBackend] = None):
        self.config = config
        self.transport = HTTPTransport(
            config.url,
            token=config.token,
            backend=backend,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )
        self.accounts = AccountRepository(self.transport, server_version=config.version)
        self.streaming = StreamingChannels(self.transport, config)

    def paginate(self, url: str, params: Optional[QueryParams] = None) -> Paginator:
        """Paginate any collection endpoint not covered by a repository."""
        return Paginator(self.transport, url, params)

    async def fetch_instance(self) -> Any:
        response = await self.transport.get("/api/v1/instance")
        return response.json()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        # Connections are per request; sessions are closed by their owners.
        pass


async def login(
    url: str,
    token: Optional[str] = None,
    backend: Optional[NetworkBackend] = None,
    **options: Any,
) -> Client:
    """
    Create a client after asking the instance for its version and
    streaming URL.

    Args:
        url: Instance URL
        token: Access token
        backend: Network backend, mainly for tests
        **options: Other ClientConfig fields

    Raises:
        APIError: If the instance endpoint cannot be fetched
    """
    client = Client(ClientConfig(url=url, token=token, **options), backend=backend)
    instance = await client.fetch_instance()

    version = None
    streaming_url = None
    if isinstance(instance, dict):
        version = instance.get("version")
        urls = instance.get("urls") or {}
        streaming_url = urls.get("streaming_api") if isinstance(urls, dict) else None

    logger.debug(f"Instance {url} runs version {version}, streaming at {streaming_url}")
    return Client(client.config.with_instance(version, streaming_url), backend=backend)
