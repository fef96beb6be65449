"""Ethereum key signer used for request envelopes and the auth handshake."""

from __future__ import annotations

import json
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import keccak, to_hex


def compact_json(payload: Any) -> str:
    """Serialize without whitespace, matching what the node hashes."""

    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class EthereumSigner:
    """Wraps one secp256k1 key; implements the signer ports."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> "EthereumSigner":
        """Load the main wallet key."""

        return cls(Account.from_key(private_key))

    @classmethod
    def generate(cls) -> "EthereumSigner":
        """Create a fresh ephemeral session key."""

        return cls(Account.create())

    @property
    def address(self) -> str:
        return self._account.address

    def sign_payload(self, payload: Any) -> str:
        """Sign keccak256 of the compact JSON payload without a message prefix."""

        digest = keccak(text=compact_json(payload))
        signed = self._account.unsafe_sign_hash(digest)
        return to_hex(signed.signature)

    def sign_typed_data(self, full_message: dict[str, Any]) -> str:
        """Produce an EIP-712 signature."""

        signed = self._account.sign_typed_data(full_message=full_message)
        return to_hex(signed.signature)

    def __repr__(self) -> str:
        return f"EthereumSigner(address={self.address!r})"


__all__ = ["EthereumSigner", "compact_json"]
