"""
Wallet session models and exceptions.
"""

from enum import Enum
from typing import Optional

from nacl.signing import SigningKey
from pydantic import BaseModel, ConfigDict

from .solana_keys import encode_address, encode_signature


DERIVED_SEED_LENGTH = 32


class SessionError(Exception):
    """Base wallet session error."""
    pass


class WalletNotConnectedError(SessionError):
    """No wallet provider or address is connected."""
    pass


class SignatureRejectedError(SessionError):
    """The user declined the signature request or the provider call failed."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "User cancelled"
        super().__init__(f"Signature request rejected: {self.reason}")


class MalformedSignatureError(SessionError):
    """The provider returned a signature in a shape we do not understand."""
    pass


class SessionSupersededError(SessionError):
    """The session was cleared while the signature request was in flight."""
    pass


class SessionState(str, Enum):
    """Lifecycle of the session slot as seen by the manager."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class WalletSession(BaseModel):
    """Proof that the connected wallet signed the session challenge."""

    model_config = ConfigDict(frozen=True)

    address: str
    public_key: bytes
    signature: bytes
    initialized_at: float

    @property
    def signature_base58(self) -> str:
        return encode_signature(self.signature)

    def derive_signing_key(self) -> SigningKey:
        """Deterministic ed25519 key seeded by the first 32 signature bytes."""
        return SigningKey(self.signature[:DERIVED_SEED_LENGTH])

    def derived_address(self) -> str:
        return encode_address(bytes(self.derive_signing_key().verify_key))


class BindingState(BaseModel):
    """Snapshot of the session binding exposed to UI code."""

    address: Optional[str] = None
    has_session: bool = False
    is_initialized: bool = False
    is_loading: bool = False
    last_error: Optional[str] = None
    display_name: Optional[str] = None
    is_resolving_name: bool = False
