"""
Streaming example using fedi_http_core.

Subscribes to the user stream and prints new statuses and notifications
until interrupted or until ten events have arrived.
"""

import asyncio
import logging

from fedi_http_core import APIError, ClientConfig, EventFrame, login

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def stream_user_timeline(limit: int = 10):
    config = ClientConfig.from_env()
    client = await login(config.url, config.token, max_reconnect_attempts=5)

    session = client.streaming.user()
    received = 0

    @session.on("update")
    def on_status(frame: EventFrame):
        status = frame.json()
        logger.info(f"@{status['account']['acct']}: {status['content'][:80]}")

    @session.on("notification")
    def on_notification(frame: EventFrame):
        notification = frame.json()
        logger.info(f"Notification: {notification['type']}")

    @session.on("*")
    async def count(frame: EventFrame):
        nonlocal received
        received += 1
        if received >= limit:
            logger.info(f"Received {received} events, closing")
            await session.close()

    async with session:
        await session.wait_closed()

    logger.info(f"Stream reconnected {session.reconnect_count} time(s)")


async def main():
    try:
        await stream_user_timeline()
    except APIError as e:
        logger.error(f"Stream failed: {e!r}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
