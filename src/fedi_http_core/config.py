"""
Client configuration.

ClientConfig collects everything the transport, the paginators and the
streaming sessions need to know about one instance and one credential.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import urlparse

from .transport import DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client settings.

    Attributes:
        url: Instance URL, e.g. ``https://mastodon.example``
        streaming_url: Base URL of the streaming API, defaults to ``url``
        token: Access token, optional for public endpoints
        version: Server version, used to gate endpoints; None allows all
        timeout: Timeout for REST calls in seconds
        stream_read_timeout: Longest silence on a stream before reconnecting
        reconnect_interval: Seconds between stream reconnect attempts
        max_reconnect_attempts: Consecutive failed reconnects before a
                                stream gives up, None retries forever
        user_agent: User-Agent header value
    """

    url: str
    streaming_url: Optional[str] = None
    token: Optional[str] = None
    version: Optional[str] = None
    timeout: float = 30.0
    stream_read_timeout: Optional[float] = 60.0
    reconnect_interval: float = 1.0
    max_reconnect_attempts: Optional[int] = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        _validate_url("url", self.url)
        if self.streaming_url is not None:
            _validate_url("streaming_url", self.streaming_url, ("http", "https", "ws", "wss"))

        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.stream_read_timeout is not None and self.stream_read_timeout <= 0:
            raise ValueError("stream_read_timeout must be positive")
        if self.reconnect_interval < 0:
            raise ValueError("reconnect_interval must be non-negative")
        if self.max_reconnect_attempts is not None and self.max_reconnect_attempts < 1:
            raise ValueError("max_reconnect_attempts must be at least 1")

    @property
    def resolved_streaming_url(self) -> str:
        """
        Streaming base URL as an http(s) URL.

        Instances advertise their streaming API as ``wss://``; the event
        stream endpoints are served over plain HTTP(S) on the same host.
        """
        url = self.streaming_url or self.url
        if url.startswith("wss://"):
            return "https://" + url[len("wss://"):]
        if url.startswith("ws://"):
            return "http://" + url[len("ws://"):]
        return url

    def with_instance(self, version: Optional[str], streaming_url: Optional[str]) -> "ClientConfig":
        """Copy with the values discovered from the instance endpoint."""
        return replace(
            self,
            version=version or self.version,
            streaming_url=streaming_url or self.streaming_url,
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = "FEDI_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ClientConfig":
        """
        Build a config from environment variables.

        Reads ``<prefix>URL`` (required), ``STREAMING_URL``, ``TOKEN``,
        ``VERSION``, ``TIMEOUT``, ``STREAM_READ_TIMEOUT``,
        ``RECONNECT_INTERVAL`` and ``MAX_RECONNECT_ATTEMPTS``.

        Raises:
            ValueError: If the URL is missing or a number does not parse
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(prefix + name)
            return value if value else None

        url = get("URL")
        if url is None:
            raise ValueError(f"{prefix}URL is not set")

        kwargs = {}
        for name in ("timeout", "stream_read_timeout", "reconnect_interval"):
            raw = get(name.upper())
            if raw is not None:
                kwargs[name] = float(raw)
        attempts = get("MAX_RECONNECT_ATTEMPTS")
        if attempts is not None:
            kwargs["max_reconnect_attempts"] = int(attempts)

        return cls(
            url=url,
            streaming_url=get("STREAMING_URL"),
            token=get("TOKEN"),
            version=get("VERSION"),
            **kwargs,
        )


def _validate_url(name: str, url: str, schemes=("http", "https")) -> None:
    if not url:
        raise ValueError(f"{name} must not be empty")
    parsed = urlparse(url)
    if parsed.scheme not in schemes or not parsed.hostname:
        raise ValueError(f"{name} must be an absolute {'/'.join(schemes)} URL, got {url!r}")
