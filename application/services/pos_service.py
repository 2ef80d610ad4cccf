"""
Application service orchestrating POS terminal transactions.

This class depends only on the PosGateway port, the OrderEvidenceStore and
DTOs. The gateway implementation is provided by infrastructure and injected
from the composition root (API), keeping dependencies one-way.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from application.dtos.pos import (
    CancelIntent,
    GatewayConfig,
    GatewayOutcome,
    QueryIntent,
    RefundIntent,
    ReverseIntent,
    SaleIntent,
    TransactionKind,
)
from application.ports.pos_gateway import PosGateway
from application.services.pos_encoder import EncodedRequest, RequestEncoder
from application.services.pos_interpreter import interpret_response
from application.services.pos_ledger import TransactionLedger
from core.logging_config import get_logger
from core.settings import PosSettings, pos_settings
from domain.common.exceptions import (
    GatewayBusinessException,
    GatewayPendingException,
    GatewayUnavailableException,
    OrderNotFoundException,
    ResponseParseException,
)
from domain.order.entity import Order
from domain.order.repository import OrderEvidenceStore


logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _keep_polling(outcome: GatewayOutcome) -> bool:
    if not outcome.is_pending:
        return False
    # The terminal reports how long the pending transaction stays alive
    remaining = outcome.remaining_expiration_time
    return remaining is None or remaining > 0


def _last_outcome(state: RetryCallState) -> GatewayOutcome:
    return state.outcome.result()


class PosTransactionService:
    def __init__(
        self,
        gateway: PosGateway,
        store: OrderEvidenceStore,
        config: GatewayConfig,
        *,
        settings: Optional[PosSettings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.config = config
        self.settings = settings or pos_settings
        self.clock = clock
        self.encoder = RequestEncoder(config, self.settings)
        self.ledger = TransactionLedger(store)

    async def _load_order(self, order_id: Optional[int]) -> Optional[Order]:
        if order_id is None:
            return None
        order = await self.store.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def execute(self, intent) -> GatewayOutcome:
        """Run one terminal operation end to end.

        Validation and duplicate checks happen before any network I/O;
        evidence is written only for a completed outcome.
        """
        kind = TransactionKind(intent.kind)
        now = self.clock()
        order = await self._load_order(intent.order_id)
        self.ledger.guard(kind, order)
        request = self.encoder.encode(intent, order, now)

        logger.info(
            "pos_request_sent",
            operation=kind.value,
            order_id=intent.order_id,
            endpoint=request.endpoint,
            request_json=request.body,
        )
        try:
            status, raw = await self.gateway.send(request.endpoint, request.body)
        except GatewayUnavailableException as exc:
            logger.error(
                "pos_gateway_unavailable",
                operation=kind.value,
                order_id=intent.order_id,
                status=exc.status,
                request_json=request.body,
                response=exc.body,
            )
            raise

        outcome = interpret_response(raw).model_copy(
            update={"request_json": request.body, "transaction_datetime": request.transaction_datetime}
        )
        logger.info(
            "pos_response_received",
            operation=kind.value,
            order_id=intent.order_id,
            http_status=status,
            response_code=outcome.response_code,
            classification=outcome.classification.value,
            response=raw,
        )

        self._raise_for_outcome(request, outcome, intent.order_id)
        await self.ledger.record(
            request,
            order,
            outcome,
            now,
            sale_datetime=getattr(intent, "original_transaction_datetime", None),
        )
        return outcome

    def _raise_for_outcome(self, request: EncodedRequest, outcome: GatewayOutcome, order_id: Optional[int]) -> None:
        log_fields = dict(
            operation=request.kind.value,
            order_id=order_id,
            response_code=outcome.response_code,
            status_message=outcome.status_message,
            request_json=request.body,
            response=outcome.raw_response,
        )
        if outcome.parse_failed:
            logger.error("pos_response_unparseable", **log_fields)
            raise ResponseParseException(outcome)
        # A query reports the terminal state; pending and error are answers, not failures
        if request.kind is TransactionKind.QUERY:
            return
        if outcome.is_error:
            logger.error("pos_transaction_rejected", **log_fields)
            raise GatewayBusinessException(outcome)
        if outcome.is_pending:
            logger.warning("pos_transaction_pending", **log_fields)
            raise GatewayPendingException(outcome)

    async def sale(self, amount: Decimal, *, order_id: Optional[int] = None, **fields) -> GatewayOutcome:
        return await self.execute(SaleIntent(amount=amount, order_id=order_id, **fields))

    async def cancel(self, amount: Decimal, *, order_id: Optional[int] = None, **fields) -> GatewayOutcome:
        return await self.execute(CancelIntent(amount=amount, order_id=order_id, **fields))

    async def refund(self, amount: Decimal, *, order_id: Optional[int] = None, **fields) -> GatewayOutcome:
        return await self.execute(RefundIntent(amount=amount, order_id=order_id, **fields))

    async def query(self, *, order_id: Optional[int] = None, **fields) -> GatewayOutcome:
        return await self.execute(QueryIntent(order_id=order_id, **fields))

    async def reverse(self, *, order_id: Optional[int] = None, **fields) -> GatewayOutcome:
        return await self.execute(ReverseIntent(order_id=order_id, **fields))

    async def await_settlement(
        self,
        intent: QueryIntent,
        *,
        attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> GatewayOutcome:
        """Poll Query until the terminal leaves the pending state.

        Only the read-only Query is repeated; financial operations never are.
        Returns the last outcome, which may still be pending when attempts run out.
        """
        attempts = attempts or self.settings.poll.attempts
        interval = self.settings.poll.interval_seconds if interval is None else interval
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(interval),
            retry=retry_if_result(_keep_polling),
            retry_error_callback=_last_outcome,
        ):
            with attempt:
                outcome = await self.execute(intent)
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(outcome)
        return outcome

    async def aclose(self) -> None:
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
