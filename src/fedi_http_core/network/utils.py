"""
URL and TLS helpers shared by the transport and the backends.
"""

import ssl
from typing import List, Optional, Tuple, Union
from urllib.parse import urlparse

DEFAULT_PORTS = {"http": 80, "https": 443}


def create_ssl_context(alpn_protocols: Optional[List[str]] = None) -> ssl.SSLContext:
    """
    Client context with certificate and hostname verification and
    TLS 1.2 as the oldest accepted version.
    """
    context = ssl.create_default_context()
    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)
    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def parse_url(url: str) -> Tuple[str, str, int, str]:
    """
    Split an absolute URL into what a connection needs.

    Returns:
        ``(scheme, host, port, target)``, the target including the query

    Raises:
        ValueError: For a scheme other than http(s) or a missing host
    """
    parsed = urlparse(url)

    scheme = parsed.scheme or "http"
    if scheme not in DEFAULT_PORTS:
        raise ValueError(f"Unsupported URL scheme: {scheme}")

    host = parsed.hostname
    if not host:
        raise ValueError(f"No hostname found in URL: {url!r}")

    port = parsed.port or DEFAULT_PORTS[scheme]
    target = parsed.path or "/"
    if parsed.query:
        target += "?" + parsed.query

    return scheme, host, port, target


def format_host_header(host: str, port: int, scheme: str) -> str:
    """Host header value; the port is left out when it is the scheme's default."""
    if ":" in host:
        host = f"[{host}]"
    if DEFAULT_PORTS.get(scheme) == port:
        return host
    return f"{host}:{port}"


def validate_port(port: Union[int, str]) -> int:
    try:
        number = int(port)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {port!r}") from None

    if not 1 <= number <= 65535:
        raise ValueError(f"Port must be between 1 and 65535, got {number}")
    return number
