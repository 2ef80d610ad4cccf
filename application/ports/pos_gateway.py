"""
POS gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements the adapter.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PosGateway(Protocol):
    """Transport to the card terminal.

    One attempt per call, no automatic retry: a financial request that timed
    out is ambiguous and is only resolved through a Query. Non-2xx statuses
    and transport failures raise GatewayUnavailableException with the raw body.
    """

    async def send(self, endpoint: str, body: str) -> tuple[int, str]: ...

    async def aclose(self) -> None: ...
