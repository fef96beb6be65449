"""Signer adapters."""

from rwa_swap_relay.infrastructure.signing.eth_signer import EthereumSigner, compact_json

__all__ = ["EthereumSigner", "compact_json"]
