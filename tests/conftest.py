"""Pytest bootstrap configuration.

Environment variables are set before any module that reads settings is
imported. Shared fakes for the POS gateway and the order evidence store live
here.
"""
import os

os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

import json
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Union

import pytest

from application.dtos.pos import GatewayConfig
from application.services.pos_service import PosTransactionService
from domain.order.entity import Order, TransactionEvidence
from domain.order.repository import OrderEvidenceStore


FIXED_NOW = datetime(2025, 3, 14, 15, 9, 26, 535000, tzinfo=timezone.utc)


class InMemoryOrderEvidenceStore(OrderEvidenceStore):
    """Dict-backed store with the same conditional-write semantics as the SQL one."""

    def __init__(self, orders: Optional[List[Order]] = None):
        self.orders: Dict[int, Order] = {}
        for order in orders or []:
            self.add(order)

    def add(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        order = self.orders.get(order_id)
        return replace(order) if order else None

    async def list_by_sale_transaction(self, transaction_id, transaction_id_string) -> List[Order]:
        matches = []
        for order in self.orders.values():
            if transaction_id is not None and order.pos_transaction_id == transaction_id:
                matches.append(replace(order))
            elif transaction_id_string and order.pos_transaction_id_string == transaction_id_string:
                matches.append(replace(order))
        return sorted(matches, key=lambda o: o.id)

    async def save_sale_evidence(self, order_id: int, evidence: TransactionEvidence) -> bool:
        order = self.orders.get(order_id)
        if order is None or not order.sale_evidence.is_empty():
            return False
        order.apply_sale(evidence)
        return True

    async def mark_refunded(self, order_ids, evidence, refunded_at) -> List[int]:
        updated = []
        for order_id in order_ids:
            order = self.orders.get(order_id)
            if order is not None and not order.is_refunded():
                order.apply_refund(evidence, refunded_at)
                updated.append(order_id)
        return updated

    async def mark_reversed(self, order_id, evidence, reversed_at) -> bool:
        order = self.orders.get(order_id)
        if order is None or order.is_reversed():
            return False
        order.apply_reverse(evidence, reversed_at)
        return True


class RecordingGateway:
    """PosGateway fake: replays queued replies and records every request."""

    provider = "stub"

    def __init__(self, *replies: Union[str, dict, tuple, Exception]):
        self.replies = list(replies)
        self.calls: List[tuple] = []
        self.closed = False

    def queue(self, *replies) -> "RecordingGateway":
        self.replies.extend(replies)
        return self

    @property
    def bodies(self) -> List[dict]:
        return [json.loads(body) for _, body in self.calls]

    async def send(self, endpoint: str, body: str) -> tuple:
        self.calls.append((endpoint, body))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, tuple):
            return reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return 200, reply

    async def aclose(self) -> None:
        self.closed = True


def make_order(order_id: int = 1, **fields) -> Order:
    fields.setdefault("total", Decimal("1500.50"))
    fields.setdefault("created_at", datetime(2025, 3, 10, 19, 45, tzinfo=timezone.utc))
    return Order(id=order_id, **fields)


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(pos_id="7", system_id="S1", branch="B2", client_app_id="C3")


@pytest.fixture
def store() -> InMemoryOrderEvidenceStore:
    return InMemoryOrderEvidenceStore()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def service(gateway, store, gateway_config) -> PosTransactionService:
    return PosTransactionService(gateway, store, gateway_config, clock=lambda: FIXED_NOW)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def order_factory():
    return make_order
