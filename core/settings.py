"""
POS terminal (ITD/POSLink) settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings; every key is read as POS__<GROUP>__<KEY>.
"""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PosEndpoints(BaseModel):
    sale: str = "processFinancialPurchase"
    cancel: str = "processFinancialPurchaseVoidByTicket"
    refund: str = "processFinancialPurchaseRefund"
    query: str = "processFinancialTransactionQuery"
    reverse: str = "processFinancialReverse"


class TerminalDefaults(BaseModel):
    """Used when a restaurant has no terminal identifiers configured."""

    pos_id: str = "1"
    system_id: str = "1"
    branch: str = "1"
    client_app_id: str = "1"


class SaleSettings(BaseModel):
    # Observed fixed values sent with every sale; not derived from the order total.
    taxable_amount: str = "1194400"
    invoice_amount: str = "1420000"


class PollSettings(BaseModel):
    attempts: int = 20
    interval_seconds: float = 3.0


class PosSettings(BaseSettings):
    provider: str = "itd"
    base_url: str = "https://poslink.hm.opos.com.uy/itdServer/"
    timeout_seconds: float = 30.0
    endpoints: PosEndpoints = Field(default_factory=PosEndpoints)
    terminal: TerminalDefaults = Field(default_factory=TerminalDefaults)
    sale: SaleSettings = Field(default_factory=SaleSettings)
    poll: PollSettings = Field(default_factory=PollSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="POS__",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    def endpoint_url(self, operation: str) -> str:
        path = getattr(self.endpoints, operation)
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")


pos_settings = PosSettings()
