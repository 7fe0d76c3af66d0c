"""
Directory service client.

HTTP client for the identity directory:
- Recipient lookup by identifier (handle, internal ID, email, phone)
- User lookup by settlement address
- Privileged payment notification delivery (shared internal key)
"""

from typing import Any
from urllib.parse import quote

import aiohttp
from loguru import logger

from paylink.config.constants import DIRECTORY_TIMEOUT, INTERNAL_KEY_HEADER
from paylink.models.recipient import DirectoryUser
from paylink.utils.exceptions import ConfigurationMissing, DirectoryLookupError
from paylink.utils.security import mask_address, mask_identifier
from paylink.utils.validation import normalize_address


def map_directory_user(raw: dict[str, Any], fallback_address: str = "") -> DirectoryUser:
    """
    Map a directory record to DirectoryUser.

    Args:
        raw: Record from the directory response "data" field; the internal ID
            is read from "internalId" or "dotpayId"
        fallback_address: Address used when the record omits it

    Returns:
        DirectoryUser with a lowercase address
    """
    address = normalize_address(raw.get("address")) or fallback_address
    return DirectoryUser(
        address=address,
        handle=raw.get("username") or None,
        internal_id=raw.get("internalId") or raw.get("dotpayId") or None,
        email=raw.get("email") or None,
        phone=raw.get("phone") or None,
        id=str(raw["id"]) if raw.get("id") is not None else None,
    )


class DirectoryClient:
    """
    Client for the directory / identity service.

    One instance per process; the aiohttp session is created lazily and
    reused until close().
    """

    def __init__(
        self,
        base_url: str,
        internal_key: str = "",
        timeout: float = DIRECTORY_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize directory client.

        Args:
            base_url: Directory service base URL ('' when not configured)
            internal_key: Shared internal credential for privileged calls
            timeout: Total request timeout in seconds
            session: Optional externally managed aiohttp session
        """
        self.base_url = (base_url or "").strip().rstrip("/")
        self._internal_key = (internal_key or "").strip()
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    @property
    def has_internal_key(self) -> bool:
        return bool(self._internal_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the owned HTTP session."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    def _headers(self, authenticated: bool = False) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated and self._internal_key:
            headers[INTERNAL_KEY_HEADER] = self._internal_key
        return headers

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationMissing(
                "Recipient lookup is unavailable (backend not configured)."
            )

    async def _get_user(self, path: str, params: dict[str, str] | None, fallback: str) -> DirectoryUser | None:
        """
        GET a single user record.

        Returns:
            DirectoryUser, or None when the directory reports no match

        Raises:
            DirectoryLookupError: On transport failure or unexpected status
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.get(
                url,
                params=params,
                headers=self._headers(authenticated=True),
            ) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    logger.warning(f"[Directory] Lookup failed: HTTP {response.status}")
                    raise DirectoryLookupError()
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.warning(f"[Directory] Lookup request failed: {e}")
            raise DirectoryLookupError() from e

        if not isinstance(payload, dict):
            raise DirectoryLookupError("Invalid lookup response from directory.")

        data = payload.get("data")
        if not payload.get("success") or not isinstance(data, dict):
            return None

        user = map_directory_user(data, fallback)
        if not user.address:
            return None
        return user

    async def lookup(self, query: str) -> DirectoryUser | None:
        """
        Resolve a recipient identifier to a user record.

        Args:
            query: Handle, internal ID, email or phone

        Returns:
            DirectoryUser or None if no user matches

        Raises:
            ConfigurationMissing: If the directory URL is not configured
            DirectoryLookupError: If the directory is unreachable
        """
        self._require_configured()
        q = (query or "").strip()
        if not q:
            return None

        logger.debug(f"[Directory] Lookup: {mask_identifier(q)}")
        return await self._get_user("/api/users/lookup", {"q": q}, "")

    async def get_by_address(self, address: str) -> DirectoryUser | None:
        """
        Load a user record by settlement address.

        Args:
            address: Settlement address

        Returns:
            DirectoryUser or None if the address is not registered

        Raises:
            ConfigurationMissing: If the directory URL is not configured
            DirectoryLookupError: If the directory is unreachable
        """
        self._require_configured()
        normalized = normalize_address(address)
        if not normalized:
            return None

        logger.debug(f"[Directory] Get by address: {mask_address(normalized)}")
        return await self._get_user(f"/api/users/{quote(normalized, safe='')}", None, normalized)

    async def send_payment_notification(self, body: dict[str, Any]) -> tuple[int, Any]:
        """
        POST a payment notification to the privileged directory endpoint.

        Args:
            body: Serialized NotificationPayload

        Returns:
            Tuple of (HTTP status, decoded JSON body or None)

        Raises:
            ConfigurationMissing: If URL or internal key is missing
            aiohttp.ClientError: On transport failure
        """
        self._require_configured()
        if not self._internal_key:
            raise ConfigurationMissing("Internal API key is not configured.")

        session = await self._get_session()
        async with session.post(
            f"{self.base_url}/api/notifications/payment",
            json=body,
            headers=self._headers(authenticated=True),
        ) as response:
            try:
                payload = await response.json(content_type=None)
            except ValueError:
                payload = None
            return response.status, payload

    async def check_connection(self) -> bool:
        """
        Check if the directory service is reachable.

        Returns:
            True if GET /health answers 2xx
        """
        if not self.is_configured:
            return False
        try:
            session = await self._get_session()
            async with session.get(f"{self.base_url}/health") as response:
                return 200 <= response.status < 300
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.debug(f"[Directory] Health check failed: {e}")
            return False
