"""
Streaming session: one live event stream and its subscribers.

The session opens a streaming response, feeds its body through an
EventStreamDecoder and hands every decoded frame to the handlers
registered for its name. Dropped connections are re-established until
the session is closed.

    CONNECTING -> OPEN -> (RECONNECTING -> OPEN)* -> CLOSED
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Union,
)

from .decoder import EventFrame, EventStreamDecoder
from .exceptions import APIError, HTTPCoreError, UnauthorizedError
from .http_primitives import QueryParams, Response

if TYPE_CHECKING:
    from .transport import HTTPTransport

logger = logging.getLogger(__name__)

Handler = Callable[[EventFrame], Union[None, Awaitable[None]]]

WILDCARD = "*"


class ConnectionState(Enum):
    """States of a streaming session."""
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class StreamSession:
    """
    Owns one streaming connection and dispatches its events.

    Delivery is at-most-once: frames that were in flight when the
    connection dropped are lost, nothing is replayed after a reconnect.
    """

    DEFAULT_RECONNECT_INTERVAL = 1.0

    def __init__(
        self,
        transport: "HTTPTransport",
        url: str,
        params: Optional[QueryParams] = None,
        token: Optional[str] = None,
        reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL,
        max_reconnect_attempts: Optional[int] = None,
        read_timeout: Optional[float] = None,
    ):
        """
        Initialize the session. Nothing is opened until ``connect()``.

        Args:
            transport: Transport used to open the stream
            url: Streaming endpoint URL or path
            params: Query parameters of the endpoint
            token: Credential, sent as ``access_token`` on every connect
            reconnect_interval: Seconds to wait before each reconnect attempt
            max_reconnect_attempts: Give up after this many failed attempts
                                    in a row, None retries forever
            read_timeout: Longest silence before the connection counts as dropped
        """
        self._transport = transport
        self._url = url
        self._params = dict(params or {})
        self._token = token
        self._reconnect_interval = reconnect_interval
        self._max_reconnect_attempts = max_reconnect_attempts
        self._read_timeout = read_timeout

        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._decoder = EventStreamDecoder()
        self._state = ConnectionState.CONNECTING
        self._response: Optional[Response] = None
        self._task: Optional["asyncio.Task[None]"] = None
        self._error: Optional[APIError] = None
        self._reconnect_count = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def error(self) -> Optional[APIError]:
        """The error that ended the session, if it did not end by ``close()``."""
        return self._error

    @property
    def reconnect_count(self) -> int:
        return self._reconnect_count

    def subscribe(self, event: str, handler: Handler) -> None:
        """
        Register a handler for an event name.

        Handlers run in registration order, once per matching frame.
        ``"*"`` matches every event. Coroutine functions are awaited.
        """
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def on(self, event: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``subscribe``."""
        def decorator(handler: Handler) -> Handler:
            self.subscribe(event, handler)
            return handler
        return decorator

    def _connect_params(self) -> Dict[str, Any]:
        params = dict(self._params)
        if self._token:
            params["access_token"] = self._token
        return params

    async def _open(self) -> Response:
        return await self._transport.open_stream(
            self._url,
            self._connect_params(),
            read_timeout=self._read_timeout,
        )

    async def connect(self) -> None:
        """
        Open the stream and start dispatching in the background.

        Raises:
            APIError: If the first connection attempt fails; the session
                      is then closed
            RuntimeError: If the session was already connected or closed
        """
        if self._task is not None or self._state is ConnectionState.CLOSED:
            raise RuntimeError(f"Cannot connect a session that is {self._state.value}")

        self._state = ConnectionState.CONNECTING
        try:
            response = await self._open()
        except (APIError, asyncio.CancelledError):
            self._state = ConnectionState.CLOSED
            raise

        if self._state is ConnectionState.CLOSED:
            await self._release(response)
            return

        self._response = response
        self._state = ConnectionState.OPEN
        logger.debug(f"Stream {self._url} open")
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        try:
            while self._state is not ConnectionState.CLOSED:
                response = self._response
                self._response = None
                if response is not None:
                    await self._pump(response)
                if self._state is ConnectionState.CLOSED:
                    break
                await self._reconnect()
        except APIError as e:
            logger.error(f"Stream {self._url} closed: {e.message}")
            self._error = e
        finally:
            self._state = ConnectionState.CLOSED
            if self._response is not None:
                await self._release(self._response)
                self._response = None

    async def _pump(self, response: Response) -> None:
        """Read one connection until it ends, dispatching complete frames."""
        try:
            async for chunk in response.stream:
                for frame in self._decoder.feed(chunk):
                    if self._state is ConnectionState.CLOSED:
                        return
                    await self._dispatch(frame)
                if self._state is ConnectionState.CLOSED:
                    return
            logger.debug(f"Stream {self._url} ended by server")
        except HTTPCoreError as e:
            if self._state is not ConnectionState.CLOSED:
                logger.warning(f"Stream {self._url} dropped: {e.message}")
        finally:
            # Partial frames cannot be completed on another connection.
            self._decoder.close()
            await self._release(response)

    async def _reconnect(self) -> None:
        self._state = ConnectionState.RECONNECTING
        attempts = 0

        while True:
            await asyncio.sleep(self._reconnect_interval)
            if self._state is ConnectionState.CLOSED:
                return

            attempts += 1
            try:
                response = await self._open()
            except UnauthorizedError:
                raise
            except APIError as e:
                logger.warning(
                    f"Reconnect attempt {attempts} to {self._url} failed: {e.message}"
                )
                if (
                    self._max_reconnect_attempts is not None
                    and attempts >= self._max_reconnect_attempts
                ):
                    raise
                continue

            if self._state is ConnectionState.CLOSED:
                await self._release(response)
                return

            self._response = response
            self._reconnect_count += 1
            self._state = ConnectionState.OPEN
            logger.debug(f"Stream {self._url} reopened after {attempts} attempt(s)")
            return

    async def _dispatch(self, frame: EventFrame) -> None:
        handlers = list(self._handlers.get(frame.name, ()))
        handlers.extend(self._handlers.get(WILDCARD, ()))

        for handler in handlers:
            if self._state is ConnectionState.CLOSED:
                return
            try:
                result = handler(frame)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Handler for {frame.name!r} event failed")

    async def _release(self, response: Response) -> None:
        stream = response.stream
        if stream is not None and hasattr(stream, "aclose"):
            await stream.aclose()

    async def close(self) -> None:
        """
        Close the session for good.

        Idempotent, and safe to call from inside a handler. No frame is
        dispatched after this returns or, from a handler, after that
        handler returns.
        """
        if self._state is ConnectionState.CLOSED and self._task is None:
            return

        self._state = ConnectionState.CLOSED
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.wait({task})
        logger.debug(f"Stream {self._url} closed")

    async def wait_closed(self) -> None:
        """
        Wait until the session ends.

        Raises:
            APIError: If the session ended because reconnecting failed
        """
        if self._task is not None:
            await asyncio.wait({self._task})
        if self._error is not None:
            raise self._error

    async def __aenter__(self) -> "StreamSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
