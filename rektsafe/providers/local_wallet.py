"""Wallet capability backed by an in-process ed25519 keypair."""

from __future__ import annotations

from typing import Optional

from nacl.signing import SigningKey
from solders.pubkey import Pubkey


class LocalKeypairWallet:
    """Signs messages with a local key, the way a browser wallet would after approval."""

    def __init__(self, signing_key: Optional[SigningKey] = None) -> None:
        self._signing_key = signing_key or SigningKey.generate()
        self.public_key = Pubkey.from_bytes(bytes(self._signing_key.verify_key))
        self.sign_count = 0

    @classmethod
    def from_seed(cls, seed: bytes) -> "LocalKeypairWallet":
        return cls(SigningKey(seed))

    @property
    def address(self) -> str:
        return str(self.public_key)

    async def sign_message(self, message: bytes) -> bytes:
        self.sign_count += 1
        return self._signing_key.sign(message).signature
