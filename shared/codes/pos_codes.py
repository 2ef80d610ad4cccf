"""
POS terminal (ITD/POSLink) codes: internal business codes and the vendor
ResponseCode table.
"""
from __future__ import annotations

from enum import IntEnum


class PosCode(IntEnum):
    # Rejected before any network call (6xxxx)
    MISSING_TICKET_NUMBER = 60001
    MISSING_TRANSACTION_ID = 60002
    INVALID_AMOUNT = 60003
    DUPLICATE_OPERATION = 60010

    # Terminal / network outcomes (61xxx)
    GATEWAY_UNAVAILABLE = 61000
    GATEWAY_ERROR = 61001
    GATEWAY_PENDING = 61002
    RESPONSE_PARSE_ERROR = 61003


# Vendor ResponseCode values
RESPONSE_CODE_UNPARSEABLE = -1
COMPLETED_CODES = frozenset({0, 100})
PENDING_CODES = frozenset({10, 11})

DEFAULT_RESPONSE_MESSAGE = "Formato en campo/s incorrecta; Faltan campos obligatorios"

RESPONSE_CODE_MESSAGES: dict[int, str] = {
    0: "Resultado OK",
    100: "Resultado OK",
    10: "Se debe consultar por la transacción",
    11: "Aguardando por operación en el pinpad",
    12: "Tiempo de transacción excedido, envíe nuevamente",
    101: "Número de pinpad inválido",
    102: "Número de sucursal inválido",
    103: "Número de caja inválido",
    104: "Fecha de la transacción inválida",
    105: "Monto no válido",
    106: "Cantidad de cuotas inválidas",
    107: "Número de plan inválido",
    108: "Número de factura inválido",
    109: "Moneda ingresada no válida",
    110: "Número de ticket inválido",
    111: "No existe transacción",
    112: "Transacción finalizada",
    113: "Identificador de sistema inválido",
    999: "Error no determinado",
    -100: "Error no determinado",
}


def response_message(code: int) -> str:
    return RESPONSE_CODE_MESSAGES.get(code, DEFAULT_RESPONSE_MESSAGE)


__all__ = [
    "PosCode",
    "RESPONSE_CODE_UNPARSEABLE",
    "COMPLETED_CODES",
    "PENDING_CODES",
    "DEFAULT_RESPONSE_MESSAGE",
    "RESPONSE_CODE_MESSAGES",
    "response_message",
]
