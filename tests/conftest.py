"""Pytest configuration and fixtures."""

import os

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"

from passkeyflow.assets import LAMPORTS_PER_SOL, AssetRegistry
from passkeyflow.config import Settings
from passkeyflow.orchestrator import WalletOrchestrator
from passkeyflow.providers.dryrun import DryRunLedger
from passkeyflow.routing.dry_run import SimulatedJupiterRouter
from passkeyflow.signing.dry_run import DryRunWallet

MERCHANT_ADDRESS = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
RECIPIENT_ADDRESS = "Stake11111111111111111111111111111111111111"


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "dry_run": True,
        "network": "devnet",
        "merchant_address": MERCHANT_ADDRESS,
        "refresh_cooldown_ms": 10_000,
        # Keep the periodic timer out of the way unless a test shortens it
        "refresh_interval_ms": 3_600_000,
        "resync_delay_ms": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def assets(settings) -> AssetRegistry:
    return AssetRegistry.from_settings(settings)


@pytest.fixture
def token_mint(assets) -> Pubkey:
    return Pubkey.from_string(assets.token.mint)


@pytest.fixture
def account() -> Pubkey:
    return Keypair().pubkey()


@pytest.fixture
def ledger(account) -> DryRunLedger:
    """Dry-run ledger holding 2.5 SOL and no token account."""
    ledger = DryRunLedger()
    ledger.set_native_balance(account, int(2.5 * LAMPORTS_PER_SOL))
    return ledger


@pytest.fixture
def wallet(account, ledger) -> DryRunWallet:
    return DryRunWallet(account=account, ledger=ledger)


@pytest.fixture
def router(assets) -> SimulatedJupiterRouter:
    return SimulatedJupiterRouter(assets)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(settings, ledger, router, wallet, clock) -> WalletOrchestrator:
    return WalletOrchestrator(settings, ledger, router, wallet, clock=clock)


@pytest.fixture
async def connected(orchestrator) -> WalletOrchestrator:
    """Orchestrator with a connected session and the initial sync applied."""
    result = await orchestrator.connect()
    assert result.success
    yield orchestrator
    await orchestrator.disconnect()
