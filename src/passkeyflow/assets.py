"""Asset registry and base-unit conversion.

Two assets are tracked: the ledger's native asset (SOL, 9 decimals) and one
configured token. Each carries a fixed decimal exponent; conversion between
human decimal amounts and integer base units goes through the two helpers
below and nowhere else.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from passkeyflow.config import Settings

NATIVE_SYMBOL = "SOL"
NATIVE_DECIMALS = 9
LAMPORTS_PER_SOL = 10**NATIVE_DECIMALS

# Aggregators quote the native asset through its wrapped mint
WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"


@dataclass(frozen=True)
class Asset:
    """An asset the wallet can hold, send, swap or pay with."""

    symbol: str
    decimals: int
    mint: str
    is_native: bool = False

    def to_base_units(self, amount: Decimal) -> int:
        return to_base_units(amount, self.decimals)

    def from_base_units(self, base_units: int) -> Decimal:
        return from_base_units(base_units, self.decimals)


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Convert a decimal amount to integer base units.

    Rounds half-up at the asset exponent, so round(amount * 10**decimals).
    """
    scaled = Decimal(amount).scaleb(decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_base_units(base_units: int, decimals: int) -> Decimal:
    """Convert integer base units to an exact decimal amount."""
    return Decimal(int(base_units)).scaleb(-decimals)


NATIVE_ASSET = Asset(
    symbol=NATIVE_SYMBOL,
    decimals=NATIVE_DECIMALS,
    mint=WRAPPED_SOL_MINT,
    is_native=True,
)


class AssetRegistry:
    """Lookup of the native asset and the configured token by symbol."""

    def __init__(self, token: Asset, native: Asset = NATIVE_ASSET):
        self.native = native
        self.token = token
        self._by_symbol = {native.symbol: native, token.symbol: token}

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetRegistry":
        token = Asset(
            symbol=settings.token_symbol.upper(),
            decimals=settings.token_decimals,
            mint=settings.token_mint,
        )
        return cls(token=token)

    @property
    def symbols(self) -> list[str]:
        return list(self._by_symbol)

    def get(self, symbol: str) -> Optional[Asset]:
        """Get asset by symbol (case-insensitive)."""
        return self._by_symbol.get((symbol or "").strip().upper())
