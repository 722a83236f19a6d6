"""Reduce wallet signMessage results to raw signature bytes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, Union, runtime_checkable

from .models import MalformedSignatureError


_BYTES_TYPES = (bytes, bytearray, memoryview)


@runtime_checkable
class SignedMessage(Protocol):
    """Wrapper some wallets return instead of the bare signature."""

    signature: bytes


RawSignResult = Union[bytes, bytearray, memoryview, SignedMessage, Mapping]


def normalize_signature(raw: RawSignResult) -> bytes:
    """Return the signature bytes carried by ``raw``.

    Accepts a byte sequence as-is, or a wrapper exposing a ``signature``
    byte sequence either as an attribute or a mapping key.
    """
    if isinstance(raw, _BYTES_TYPES):
        return bytes(raw)

    if isinstance(raw, Mapping):
        inner = raw.get("signature")
    else:
        inner = getattr(raw, "signature", None)

    if isinstance(inner, _BYTES_TYPES):
        return bytes(inner)

    raise MalformedSignatureError(
        f"Invalid signature format: {type(raw).__name__}"
    )


__all__ = ["RawSignResult", "SignedMessage", "normalize_signature"]
