"""
Order evidence store - the only persistence capability the POS gateway needs
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import Order, TransactionEvidence


class OrderEvidenceStore(ABC):
    """Read orders and write POS evidence onto them.

    The write methods are conditional updates keyed on the guard column, so
    that a concurrent writer cannot overwrite evidence that is already there.
    """

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[Order]:
        """Load an order with its evidence"""
        pass

    @abstractmethod
    async def list_by_sale_transaction(
        self,
        transaction_id: Optional[int],
        transaction_id_string: Optional[str],
    ) -> List[Order]:
        """Orders settled under the same original card swipe (id equality, not order id)"""
        pass

    @abstractmethod
    async def save_sale_evidence(self, order_id: int, evidence: TransactionEvidence) -> bool:
        """Write sale evidence if the order has none yet; returns False otherwise"""
        pass

    @abstractmethod
    async def mark_refunded(
        self,
        order_ids: List[int],
        evidence: TransactionEvidence,
        refunded_at: datetime,
    ) -> List[int]:
        """Set refund evidence where refunded_at is still null; returns the ids updated"""
        pass

    @abstractmethod
    async def mark_reversed(
        self,
        order_id: int,
        evidence: TransactionEvidence,
        reversed_at: datetime,
    ) -> bool:
        """Set reverse evidence if reversed_at is still null"""
        pass
