"""Epochs, transaction-rate counting, chain configuration and testnet genesis helpers."""

__version__ = "0.4.1"