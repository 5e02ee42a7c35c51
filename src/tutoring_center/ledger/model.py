from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RefundMethod, TransactionType
from ..subscriptions.model import StudentSubscription


@dataclass(frozen=True)
class FinancialTransaction:
    """Append-only ledger entry. Sign is carried by ``tx_type``, never by ``amount``."""

    transaction_id: str
    student_id: str
    created_at: datetime
    tx_type: TransactionType
    amount: float
    description: str = ""
    subscription_id: Optional[str] = None
    refund_method: Optional[RefundMethod] = None

    @property
    def credit_delta(self) -> float:
        """Effect of this entry on the student's stored balance."""
        if self.tx_type == TransactionType.DEBIT:
            return -self.amount
        if self.tx_type == TransactionType.CORRECTION:
            return self.amount
        if self.tx_type == TransactionType.REFUND and self.refund_method == RefundMethod.CREDIT:
            return self.amount
        return 0.0


@dataclass(frozen=True)
class SubscriptionPurchase:
    subscription: StudentSubscription
    payment: FinancialTransaction
    cleared_debt_lessons: int


@dataclass(frozen=True)
class SubscriptionRefund:
    subscription: StudentSubscription
    method: RefundMethod
    amount: float
    transaction: Optional[FinancialTransaction]
