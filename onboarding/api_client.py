"""HTTP client for the marketplace auth backend."""

import logging
from typing import Any

import httpx

from onboarding.config import settings

logger = logging.getLogger(__name__)


class MarketplaceClient:
    """
    Thin async wrapper around httpx.

    Transport errors propagate as httpx exceptions and non-2xx responses are
    returned as-is; ProvisioningCoordinator decides what they mean.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SEC
        self._transport = transport

    async def request(
        self,
        method: str,
        endpoint: str,
        json: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.request(method, endpoint, json=json, headers=headers)
        logger.debug("API %s %s → %s", method, endpoint, resp.status_code)
        return resp

