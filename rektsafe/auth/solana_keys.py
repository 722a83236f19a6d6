"""
Solana key encoding and ed25519 signature verification.
"""

from __future__ import annotations

from functools import lru_cache

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from solders.pubkey import Pubkey
from solders.signature import Signature


PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


@lru_cache(maxsize=128)
def is_valid_solana_address(address: str) -> bool:
    if not address:
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def decode_address(address: str) -> bytes:
    """Raw public key bytes for a base58 address. Raises ValueError."""
    return bytes(Pubkey.from_string(address))


def encode_address(public_key: bytes) -> str:
    return str(Pubkey.from_bytes(public_key))


def encode_signature(signature: bytes) -> str:
    return str(Signature.from_bytes(signature))


def verify_solana_signature(
    message: bytes,
    signature: bytes,
    public_key: bytes,
) -> None:
    """
    Verify a Solana signMessage signature.
    Raises ValueError if verification fails.
    """
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValueError("Invalid Solana public key length")
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError("Invalid Solana signature length")

    verify_key = VerifyKey(public_key)
    try:
        verify_key.verify(message, signature)
    except BadSignatureError as exc:
        raise ValueError("Invalid Solana signature") from exc


def shorten_address(address: str, head: int = 6, tail: int = 4) -> str:
    """Render ``address`` as ``head...tail`` for display."""
    if not address or len(address) <= head + tail:
        return address
    return f"{address[:head]}...{address[-tail:]}"


__all__ = [
    "decode_address",
    "encode_address",
    "encode_signature",
    "is_valid_solana_address",
    "shorten_address",
    "verify_solana_signature",
]
