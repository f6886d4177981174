"""Passkey smart-wallet session and transaction orchestrator for Solana."""

__version__ = "0.1.0"
