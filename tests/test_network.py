"""
Tests for network interfaces and mock implementations.
"""

import asyncio

import pytest

from fedi_http_core.network import (
    NetworkStream,
    NetworkBackend,
    AsyncioNetworkBackend,
    MockNetworkStream,
    MockNetworkBackend,
    format_host_header,
    parse_url,
    validate_port,
)


class TestMockNetworkStream:
    """Test cases for MockNetworkStream."""

    @pytest.mark.asyncio
    async def test_read_write_basic(self):
        stream = MockNetworkStream()

        await stream.write(b"hello world")
        assert stream.written_data == b"hello world"

        stream.add_data(b"hello world")
        assert await stream.read(5) == b"hello"
        assert await stream.read() == b" world"

    @pytest.mark.asyncio
    async def test_read_empty_stream(self):
        stream = MockNetworkStream()
        assert await stream.read() == b""
        assert await stream.read(10) == b""

    @pytest.mark.asyncio
    async def test_chunk_size_limits_reads(self):
        stream = MockNetworkStream(b"abcdefgh", chunk_size=3)
        assert await stream.read(100) == b"abc"
        assert await stream.read(2) == b"de"
        assert await stream.read() == b"fgh"
        assert await stream.read() == b""

    @pytest.mark.asyncio
    async def test_error_after_data(self):
        stream = MockNetworkStream(b"data", error=ConnectionResetError("reset by peer"))
        assert await stream.read() == b"data"
        with pytest.raises(ConnectionResetError):
            await stream.read()

    @pytest.mark.asyncio
    async def test_read_after_close(self):
        stream = MockNetworkStream(b"data")
        await stream.aclose()
        assert stream.is_closed

        with pytest.raises(RuntimeError, match="Stream is closed"):
            await stream.read()

    @pytest.mark.asyncio
    async def test_write_after_close(self):
        stream = MockNetworkStream()
        await stream.aclose()

        with pytest.raises(RuntimeError, match="Stream is closed"):
            await stream.write(b"data")

    @pytest.mark.asyncio
    async def test_hold_open_waits_for_data(self):
        stream = MockNetworkStream(b"a", hold_open=True)
        assert await stream.read() == b"a"

        pending = asyncio.create_task(stream.read())
        await asyncio.sleep(0)
        assert not pending.done()

        stream.add_data(b"b")
        assert await asyncio.wait_for(pending, timeout=1) == b"b"

    @pytest.mark.asyncio
    async def test_hold_open_woken_by_close(self):
        stream = MockNetworkStream(hold_open=True)
        pending = asyncio.create_task(stream.read())
        await asyncio.sleep(0)

        await stream.aclose()
        with pytest.raises(RuntimeError, match="Stream is closed"):
            await asyncio.wait_for(pending, timeout=1)

    def test_extra_info(self):
        stream = MockNetworkStream()
        assert stream.get_extra_info("peername") is None
        stream.set_extra_info("peername", ("127.0.0.1", 443))
        assert stream.get_extra_info("peername") == ("127.0.0.1", 443)


class TestMockNetworkBackend:
    """Test cases for MockNetworkBackend."""

    @pytest.mark.asyncio
    async def test_streams_are_handed_out_in_order(self):
        backend = MockNetworkBackend()
        first = backend.add_stream("example.com", 443, b"one")
        second = backend.add_stream("example.com", 443, b"two")

        assert await backend.connect_tls("example.com", 443) is first
        assert await backend.connect_tls("example.com", 443) is second
        assert backend.connection_count == 2
        assert backend.opened_streams == [first, second]

    @pytest.mark.asyncio
    async def test_refuses_without_queued_stream(self):
        backend = MockNetworkBackend()
        with pytest.raises(OSError, match="Connection refused"):
            await backend.connect_tcp("example.com", 80)

    @pytest.mark.asyncio
    async def test_hosts_are_separate(self):
        backend = MockNetworkBackend()
        backend.add_stream("a.example", 80)

        with pytest.raises(OSError):
            await backend.connect_tcp("b.example", 80)
        assert await backend.connect_tcp("a.example", 80) is not None

    @pytest.mark.asyncio
    async def test_tls_extra_info(self):
        backend = MockNetworkBackend()
        backend.add_stream("example.com", 443)

        stream = await backend.connect_tls("example.com", 443, alpn_protocols=["http/1.1"])
        assert stream.get_extra_info("ssl_object") is True
        assert stream.get_extra_info("selected_alpn_protocol") == "http/1.1"
        assert stream.get_extra_info("peername") == ("example.com", 443)

    def test_reset(self):
        backend = MockNetworkBackend()
        backend.add_stream("example.com", 443)
        backend.reset()
        assert backend.connection_count == 0
        assert backend.opened_streams == []


class TestInterfaces:
    """Test that implementations satisfy the interfaces."""

    def test_mock_implements_interfaces(self):
        assert isinstance(MockNetworkStream(), NetworkStream)
        assert isinstance(MockNetworkBackend(), NetworkBackend)
        assert isinstance(AsyncioNetworkBackend(), NetworkBackend)

    def test_interfaces_are_abstract(self):
        with pytest.raises(TypeError):
            NetworkStream()
        with pytest.raises(TypeError):
            NetworkBackend()


class TestUtils:
    """Test network utility functions."""

    def test_parse_url(self):
        assert parse_url("https://mastodon.example/api/v1/streaming/user?access_token=t") == (
            "https", "mastodon.example", 443, "/api/v1/streaming/user?access_token=t",
        )
        assert parse_url("http://localhost:4000") == ("http", "localhost", 4000, "/")

    def test_parse_url_rejects_missing_host(self):
        with pytest.raises(ValueError, match="No hostname"):
            parse_url("https:///path")

    def test_parse_url_rejects_other_schemes(self):
        with pytest.raises(ValueError, match="Unsupported URL scheme"):
            parse_url("ftp://example.com/")

    def test_format_host_header(self):
        assert format_host_header("example.com", 443, "https") == "example.com"
        assert format_host_header("example.com", 8443, "https") == "example.com:8443"
        assert format_host_header("::1", 8080, "http") == "[::1]:8080"

    def test_validate_port(self):
        assert validate_port("443") == 443
        with pytest.raises(ValueError):
            validate_port(0)
        with pytest.raises(ValueError):
            validate_port("http")

