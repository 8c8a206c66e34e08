"""HTTP client for the external filler service."""

import asyncio
import logging
from typing import Any, Dict

import aiohttp

from ..orders import SignedOrder
from .models import ExecuteRequest, ExecuteResponse

logger = logging.getLogger(__name__)


class FillerClient:
    """Posts quote requests and signed orders to the filler API."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> Any:
        """POST JSON and return the decoded body, whatever the status code."""
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        logger.debug(f"POST {url}")
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                url,
                headers={"content-type": "application/json"},
                json=payload
            ) as response:
                if not response.ok:
                    logger.warning(f"Filler returned HTTP {response.status} for {path}")
                return await response.json(content_type=None)

    async def request_quote(self, payload: Dict[str, Any]) -> Any:
        return await self._post_json("/quote", payload)

    async def execute(self, signed: SignedOrder) -> ExecuteResponse:
        """Submit a signed order for the filler to execute on-chain."""
        request = ExecuteRequest.from_signed_order(signed)
        try:
            data = await self._post_json("/execute", request.to_payload())
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return ExecuteResponse(success=False, error=f"Filler request failed: {e}")
        return ExecuteResponse.from_payload(data)
