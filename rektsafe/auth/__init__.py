from .binding import WalletSessionBinding
from .models import (
    BindingState,
    MalformedSignatureError,
    SessionError,
    SessionState,
    SessionSupersededError,
    SignatureRejectedError,
    WalletNotConnectedError,
    WalletSession,
)
from .session_manager import SessionManager, SignatureSink, WalletProvider
from .session_store import SessionStore
from .signature import normalize_signature

__all__ = [
    "WalletSessionBinding",
    "BindingState",
    "MalformedSignatureError",
    "SessionError",
    "SessionState",
    "SessionSupersededError",
    "SignatureRejectedError",
    "WalletNotConnectedError",
    "WalletSession",
    "SessionManager",
    "SignatureSink",
    "WalletProvider",
    "SessionStore",
    "normalize_signature",
]
