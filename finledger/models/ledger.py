"""
Investment Ledger Models

A LedgerEntry is a single recorded investment transaction. Entries are
immutable once recorded; the Holding is DERIVED from the full ordered
entry sequence and never stored as a source of truth.

DESIGN DECISION: Sign conventions are enforced here, at construction time.
Negative quantities or amounts never reach the cost-basis fold, which
trusts its input.
"""

from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from finledger.models.base import UTCDateTime, utc_now


class EntryType(str, Enum):
    """Kinds of ledger entries."""
    BUY = "buy"
    SELL = "sell"
    SIP = "sip"
    FEE = "fee"
    DIVIDEND = "dividend"  # Recorded for history, does not move the holding


class LedgerEntry(BaseModel):
    """
    One investment transaction for one investment.

    Amount is the gross consideration for buys/sips, the charge for fees
    and the payout for dividends. Fees and taxes on buys/sips are
    capitalized into cost basis.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    investment_id: UUID
    type: EntryType
    quantity: float = Field(
        default=0.0,
        ge=0,
        description="Units bought or sold"
    )
    price: Optional[float] = Field(
        default=None,
        ge=0,
        description="Per-unit price, informational only"
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Gross amount of the transaction"
    )
    fees: float = Field(default=0.0, ge=0)
    taxes: float = Field(default=0.0, ge=0)
    date: UTCDateTime
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("fees", "taxes", mode="before")
    @classmethod
    def none_is_zero(cls, v):
        """Missing fee/tax columns count as zero."""
        return 0.0 if v is None else v


class Holding(BaseModel):
    """
    Position derived from a ledger fold.

    INVARIANT: quantity == 0 implies cost_basis == 0.
    """
    model_config = ConfigDict(frozen=True)

    quantity: float = Field(default=0.0, ge=0)
    cost_basis: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def avg_buy_price(self) -> float:
        """Average cost per unit, zero when flat."""
        if self.quantity > 0:
            return self.cost_basis / self.quantity
        return 0.0


class Investment(BaseModel):
    """
    A tracked investment.

    quantity and avg_buy_price are a persisted copy of the latest Holding.
    They are only ever written by the ledger recompute.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    symbol: Optional[str] = Field(default=None, max_length=40)
    quantity: float = Field(default=0.0, ge=0)
    avg_buy_price: float = Field(default=0.0, ge=0)
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)
