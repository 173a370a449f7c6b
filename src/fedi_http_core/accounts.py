"""
Account endpoints (``/api/v1/accounts``).

Thin wrappers: single resources come back as parsed JSON, collections
as Paginators.
"""

from typing import Any, Dict, Optional, Sequence

from .http_primitives import QueryParams
from .paginator import Paginator
from .transport import HTTPTransport
from .versioning import since


class AccountRepository:
    """Account related REST calls."""

    def __init__(self, transport: HTTPTransport, server_version: Optional[str] = None):
        self._transport = transport
        self.server_version = server_version

    @since("0.0.0")
    async def fetch(self, account_id: str) -> Dict[str, Any]:
        """View information about a profile."""
        response = await self._transport.get(f"/api/v1/accounts/{account_id}")
        return response.json()

    @since("2.7.0")
    async def create(self, params: QueryParams) -> Dict[str, Any]:
        """Register an account; returns the token of the new user."""
        response = await self._transport.post("/api/v1/accounts", form=params)
        return response.json()

    @since("0.0.0")
    async def verify_credentials(self) -> Dict[str, Any]:
        response = await self._transport.get("/api/v1/accounts/verify_credentials")
        return response.json()

    @since("0.0.0")
    async def update_credentials(self, params: QueryParams) -> Dict[str, Any]:
        """
        Update the profile of the logged in user.

        Sent as a multipart form, so ``avatar`` and ``header`` may be raw
        bytes or a FormFile. Nested settings such as ``source[privacy]``
        are passed as nested mappings.
        """
        response = await self._transport.patch(
            "/api/v1/accounts/update_credentials", form=params
        )
        return response.json()

    @since("0.0.0")
    def list_followers(self, account_id: str, params: Optional[QueryParams] = None) -> Paginator:
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/followers", params)

    @since("0.0.0")
    def list_following(self, account_id: str, params: Optional[QueryParams] = None) -> Paginator:
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/following", params)

    @since("0.0.0")
    def list_statuses(self, account_id: str, params: Optional[QueryParams] = None) -> Paginator:
        """Statuses posted to the given account, newest first."""
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/statuses", params)

    @since("0.0.0")
    def search(self, params: QueryParams) -> Paginator:
        return Paginator(self._transport, "/api/v1/accounts/search", params)

    @since("2.1.0")
    def list_lists(self, account_id: str) -> Paginator:
        """User lists that the account is part of."""
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/lists")

    @since("2.8.0")
    def list_identity_proofs(self, account_id: str) -> Paginator:
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/identity_proofs")

    @since("3.3.0")
    def list_featured_tags(self, account_id: str) -> Paginator:
        return Paginator(self._transport, f"/api/v1/accounts/{account_id}/featured_tags")

    async def _relationship(
        self,
        account_id: str,
        action: str,
        params: Optional[QueryParams] = None,
    ) -> Dict[str, Any]:
        response = await self._transport.post(f"/api/v1/accounts/{account_id}/{action}", params)
        return response.json()

    @since("0.0.0")
    async def follow(self, account_id: str, params: Optional[QueryParams] = None) -> Dict[str, Any]:
        return await self._relationship(account_id, "follow", params)

    @since("0.0.0")
    async def unfollow(self, account_id: str, params: Optional[QueryParams] = None) -> Dict[str, Any]:
        return await self._relationship(account_id, "unfollow", params)

    @since("0.0.0")
    async def block(self, account_id: str) -> Dict[str, Any]:
        return await self._relationship(account_id, "block")

    @since("0.0.0")
    async def unblock(self, account_id: str) -> Dict[str, Any]:
        return await self._relationship(account_id, "unblock")

    @since("0.0.0")
    async def mute(self, account_id: str, params: Optional[QueryParams] = None) -> Dict[str, Any]:
        return await self._relationship(account_id, "mute", params)

    @since("0.0.0")
    async def unmute(self, account_id: str) -> Dict[str, Any]:
        return await self._relationship(account_id, "unmute")

    @since("2.5.0")
    async def pin(self, account_id: str) -> Dict[str, Any]:
        """Feature the account on your own profile."""
        return await self._relationship(account_id, "pin")

    @since("2.5.0")
    async def unpin(self, account_id: str) -> Dict[str, Any]:
        return await self._relationship(account_id, "unpin")

    @since("3.2.0")
    async def create_note(self, account_id: str, comment: str) -> Dict[str, Any]:
        """Set a private note on the account."""
        return await self._relationship(account_id, "note", {"comment": comment})

    @since("3.5.0")
    async def remove_from_followers(self, account_id: str) -> Dict[str, Any]:
        return await self._relationship(account_id, "remove_from_followers")

    @since("0.0.0")
    async def fetch_relationships(self, account_ids: Sequence[str]) -> Any:
        response = await self._transport.get(
            "/api/v1/accounts/relationships", {"id": list(account_ids)}
        )
        return response.json()

    @since("3.4.0")
    async def lookup(self, acct: str) -> Dict[str, Any]:
        """Resolve a webfinger address to an account without a search."""
        response = await self._transport.get("/api/v1/accounts/lookup", {"acct": acct})
        return response.json()

    @since("3.5.0")
    async def fetch_familiar_followers(self, account_ids: Sequence[str]) -> Any:
        response = await self._transport.get(
            "/api/v1/accounts/familiar_followers", {"id": list(account_ids)}
        )
        return response.json()
