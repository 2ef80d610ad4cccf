"""
ITD/POSLink HTTP client implementing the PosGateway port with httpx.

One POST per call under a fixed overall deadline and no retry. A request that timed
out is resolved through a Query, never by resending it.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import anyio
import httpx

from application.ports.pos_gateway import PosGateway
from core.logging_config import get_logger
from core.settings import pos_settings
from domain.common.exceptions import GatewayUnavailableException


logger = get_logger(__name__)

CONTENT_TYPE = "application/json; charset=UTF-8"


class ItdPosClient(PosGateway):
    provider: str = "itd"

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout_s = timeout if timeout is not None else pos_settings.timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._timeout_s)

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        yield self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def send(self, endpoint: str, body: str) -> tuple[int, str]:
        try:
            # httpx timeouts are per phase and per chunk; the deadline covers the whole exchange
            with anyio.fail_after(self._timeout_s):
                async with self.client() as http:
                    resp = await http.post(
                        endpoint,
                        content=body.encode("utf-8"),
                        headers={"Content-Type": CONTENT_TYPE},
                    )
        except (httpx.TimeoutException, TimeoutError) as exc:
            logger.error("pos_http_timeout", endpoint=endpoint, timeout=self._timeout_s)
            raise GatewayUnavailableException(
                f"POS terminal did not answer within {self._timeout_s:g}s",
                endpoint=endpoint,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("pos_http_transport_error", endpoint=endpoint, error=str(exc))
            raise GatewayUnavailableException(
                f"Error communicating with the POS terminal: {exc}",
                endpoint=endpoint,
            ) from exc

        text = resp.text
        if not resp.is_success:
            logger.error("pos_http_error_status", endpoint=endpoint, status=resp.status_code, response=text)
            raise GatewayUnavailableException(
                f"POS terminal responded with HTTP {resp.status_code}",
                status=resp.status_code,
                body=text,
                endpoint=endpoint,
            )
        return resp.status_code, text
