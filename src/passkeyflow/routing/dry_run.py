"""Simulated aggregator for dry-run mode and tests."""

import base64
import logging
import secrets
from decimal import Decimal
from typing import Optional

from solders.pubkey import Pubkey

from passkeyflow.assets import AssetRegistry
from passkeyflow.routing.base import AggregatorProvider, SwapQuote

logger = logging.getLogger(__name__)

# Simulated USD prices; for demonstration only
SIMULATED_PRICES: dict[str, Decimal] = {
    "SOL": Decimal("150.00"),
    "USDC": Decimal("1.00"),
    "USDT": Decimal("1.00"),
}


class SimulatedJupiterRouter(AggregatorProvider):
    """Simulated Jupiter router quoting the registry's assets at fixed prices."""

    def __init__(self, assets: AssetRegistry, prices: Optional[dict[str, Decimal]] = None):
        self.assets = assets
        self._prices = dict(prices or SIMULATED_PRICES)
        self.swap_fee = Decimal("0.001")

    @property
    def name(self) -> str:
        return "jupiter_sim"

    def _asset_for_mint(self, mint: str):
        for symbol in self.assets.symbols:
            asset = self.assets.get(symbol)
            if asset.mint == mint:
                return asset
        return None

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        direct_only: bool = True,
    ) -> Optional[SwapQuote]:
        """Generate a simulated quote."""
        from_asset = self._asset_for_mint(input_mint)
        to_asset = self._asset_for_mint(output_mint)
        if from_asset is None or to_asset is None or amount <= 0:
            return None

        from_price = self._prices.get(from_asset.symbol)
        to_price = self._prices.get(to_asset.symbol)
        if from_price is None or to_price is None:
            return None

        usd_value = from_asset.from_base_units(amount) * from_price
        to_amount = usd_value / to_price * (Decimal("1") - self.swap_fee)
        out_amount = to_asset.to_base_units(to_amount)
        if out_amount <= 0:
            return None

        route = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "inAmount": str(amount),
            "outAmount": str(out_amount),
            "slippageBps": slippage_bps,
            "routePlan": [{"swapInfo": {"label": "simulated"}, "percent": 100}],
            "simulated": True,
        }
        return SwapQuote(
            provider=self.name,
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=amount,
            out_amount=out_amount,
            slippage_bps=slippage_bps,
            route=route,
            route_labels=["simulated"],
        )

    async def build_swap_transaction(self, quote: SwapQuote, account: Pubkey) -> Optional[str]:
        """Return an opaque payload standing in for a serialized transaction."""
        return base64.b64encode(secrets.token_bytes(256)).decode()
