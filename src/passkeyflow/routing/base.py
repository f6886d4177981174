"""Abstract aggregator interface for swap routing."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


@dataclass
class SwapQuote:
    """A priced route returned by an aggregator.

    Amounts are base units. `route` is the aggregator's raw route object and
    is handed back verbatim when requesting the swap transaction.
    """

    provider: str
    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    slippage_bps: int
    route: dict = field(default_factory=dict)
    price_impact_pct: Decimal = Decimal("0")
    route_labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "input_mint": self.input_mint,
            "output_mint": self.output_mint,
            "in_amount": self.in_amount,
            "out_amount": self.out_amount,
            "slippage_bps": self.slippage_bps,
            "price_impact_pct": str(self.price_impact_pct),
            "route_labels": self.route_labels,
        }


class AggregatorProvider(ABC):
    """Abstract base class for price aggregators."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        direct_only: bool = True,
    ) -> Optional[SwapQuote]:
        """
        Request a priced route.

        Args:
            input_mint: Mint of the asset being sold
            output_mint: Mint of the asset being bought
            amount: Input amount in base units
            slippage_bps: Maximum slippage in basis points
            direct_only: Restrict to single-hop routes

        Returns:
            SwapQuote, or None if the aggregator has no route
        """
        pass

    @abstractmethod
    async def build_swap_transaction(self, quote: SwapQuote, account: Pubkey) -> Optional[str]:
        """
        Request a serialized transaction for a quoted route.

        Args:
            quote: Quote returned by get_quote
            account: Account that will sign and pay for the swap

        Returns:
            Base64 transaction payload, or None if none was returned
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None
