"""
Pagination example using fedi_http_core.

Walks the followers of an account page by page, then restarts from the
first page. Configure with FEDI_URL, FEDI_TOKEN and FEDI_ACCOUNT_ID.
"""

import asyncio
import logging
import os

from fedi_http_core import APIError, ClientConfig, login

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def list_followers():
    """Print every follower of an account."""
    config = ClientConfig.from_env()
    account_id = os.environ.get("FEDI_ACCOUNT_ID", "1")

    client = await login(config.url, config.token)
    logger.info(f"Connected to {client.config.url} (version {client.config.version})")

    followers = client.accounts.list_followers(account_id, {"limit": 40})

    total = 0
    async for page in followers:
        for account in page:
            total += 1
            logger.info(f"{total:5d} @{account['acct']}")

    logger.info(f"{total} followers, pagination done: {followers.done}")

    # Newest followers again, without building a new paginator
    first_page = await followers.advance(reset=True)
    if first_page:
        logger.info(f"Most recent follower: @{first_page[0]['acct']}")


async def main():
    try:
        await list_followers()
    except APIError as e:
        logger.error(f"Example failed: {e!r}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
