"""
Factory for POS terminal gateways.
"""
from __future__ import annotations

from typing import Optional

from application.ports.pos_gateway import PosGateway
from core.settings import pos_settings


def get_pos_gateway(provider: Optional[str] = None) -> PosGateway:
    name = (provider or pos_settings.provider).lower()
    if name in {"itd", "poslink"}:
        from .itd_client import ItdPosClient
        return ItdPosClient()
    raise ValueError(f"Unsupported POS provider: {name}")
