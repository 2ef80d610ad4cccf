"""
API dependencies - composition root for the POS gateway
"""
from typing import AsyncIterator

from fastapi import Depends

from application.dtos.pos import GatewayConfig
from application.ports.pos_gateway import PosGateway
from application.services.pos_service import PosTransactionService
from infrastructure.external.pos import get_pos_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


async def get_gateway_config() -> GatewayConfig:
    """Terminal identifiers of the current restaurant.

    Tenant configuration is owned elsewhere; blanks fall back to POS__TERMINAL__*.
    """
    return GatewayConfig.resolve()


async def get_gateway() -> AsyncIterator[PosGateway]:
    gateway = get_pos_gateway()
    try:
        yield gateway
    finally:
        await gateway.aclose()


async def get_pos_service(
    gateway: PosGateway = Depends(get_gateway),
    config: GatewayConfig = Depends(get_gateway_config),
) -> AsyncIterator[PosTransactionService]:
    # Evidence writes commit with the unit of work; failures roll back
    async with SQLAlchemyUnitOfWork() as uow:
        yield PosTransactionService(gateway, uow.order_repository, config)
