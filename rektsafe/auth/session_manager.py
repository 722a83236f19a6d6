"""
Wallet session manager.

Turns one signature over a fixed challenge into an address-scoped session
held in memory. Prompting the wallet is disruptive, so a session is reused
for as long as the same address stays connected and concurrent requests for
one address share a single signature prompt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from nacl.signing import SigningKey

from ..config import settings
from .models import (
    MalformedSignatureError,
    SessionError,
    SessionState,
    SessionSupersededError,
    SignatureRejectedError,
    WalletNotConnectedError,
    WalletSession,
)
from .session_store import SessionStore
from .signature import RawSignResult, normalize_signature
from .solana_keys import SIGNATURE_LENGTH, decode_address, verify_solana_signature

logger = logging.getLogger(__name__)


class WalletProvider(Protocol):
    """Signing capability exposed by a connected wallet."""

    public_key: Any

    async def sign_message(self, message: bytes) -> RawSignResult:
        ...


class SignatureSink(Protocol):
    """Downstream consumer handed the session signature once it is committed."""

    async def initialize_with_signature(self, signature: bytes, address: str) -> None:
        ...


class SessionManager:
    """
    Owns the session slot and the signature exchange that fills it.

    Usage:
        manager = SessionManager(sinks=[vault_sdk])
        session = await manager.initialize_session(wallet, wallet_address)

        # Later, before trusting the session for a specific wallet
        if manager.is_session_valid_for_wallet(wallet_address):
            key = manager.get_derived_keypair()
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        sinks: Optional[Iterable[SignatureSink]] = None,
        challenge: Optional[bytes] = None,
        verify_signatures: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store if store is not None else SessionStore()
        self._sinks: List[SignatureSink] = list(sinks or [])
        self._challenge = challenge if challenge is not None else settings.challenge_bytes
        self._verify_signatures = (
            settings.verify_signatures if verify_signatures is None else verify_signatures
        )
        self._clock = clock

        self._state = SessionState.UNINITIALIZED
        self._last_error: Optional[SessionError] = None
        # Bumped by clear_session(); exchanges started under an older value are discarded.
        self._generation = 0
        self._current_address: Optional[str] = None
        self._inflight: Dict[str, asyncio.Future] = {}

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_error(self) -> Optional[SessionError]:
        return self._last_error

    @property
    def is_loading(self) -> bool:
        return self._state == SessionState.INITIALIZING

    def add_sink(self, sink: SignatureSink) -> None:
        self._sinks.append(sink)

    async def initialize_session(
        self,
        provider: Optional[WalletProvider],
        address: Optional[str],
    ) -> WalletSession:
        """
        Return the session for ``address``, prompting the wallet only if needed.

        Raises:
            WalletNotConnectedError: no provider or address
            SignatureRejectedError: the wallet refused or failed to sign
            MalformedSignatureError: the wallet returned an unusable signature
            SessionSupersededError: the session was cleared or the wallet
                switched while the prompt was open
        """
        if provider is None or not address:
            raise WalletNotConnectedError("Wallet not connected")

        if self.is_session_valid_for_wallet(address):
            return self.store.get()

        self._current_address = address
        pending = self._inflight.get(address)
        if pending is None:
            self._state = SessionState.INITIALIZING
            self._last_error = None
            pending = asyncio.ensure_future(
                self._run_signature_exchange(provider, address, self._generation)
            )
            self._inflight[address] = pending
            pending.add_done_callback(lambda fut, key=address: self._forget(key, fut))
        else:
            logger.debug("Joining in-flight signature request for %s", address)

        return await asyncio.shield(pending)

    def get_session(self) -> Optional[WalletSession]:
        return self.store.get()

    def clear_session(self) -> None:
        self.store.clear()
        self._generation += 1
        self._current_address = None
        self._inflight.clear()
        self._state = SessionState.UNINITIALIZED
        self._last_error = None
        logger.info("Wallet session cleared")

    def is_session_valid_for_wallet(self, address: Optional[str]) -> bool:
        session = self.store.get()
        return session is not None and bool(address) and session.address == address

    def get_session_signature(self) -> Optional[bytes]:
        session = self.store.get()
        return session.signature if session else None

    def get_derived_keypair(self) -> Optional[SigningKey]:
        session = self.store.get()
        return session.derive_signing_key() if session else None

    async def _run_signature_exchange(
        self,
        provider: WalletProvider,
        address: str,
        generation: int,
    ) -> WalletSession:
        logger.info("Requesting session signature for %s", address)

        try:
            public_key = _public_key_bytes(provider, address)
            try:
                raw = await provider.sign_message(self._challenge)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                raise SignatureRejectedError(str(exc) or None) from exc

            signature = normalize_signature(raw)
            self._check_signature(signature, public_key)
        except SessionError as exc:
            if self._is_current(generation, address):
                self._state = SessionState.ERROR
                self._last_error = exc
            logger.warning(
                "Session initialization failed for %s: %s (%s)",
                address,
                exc,
                type(exc).__name__,
            )
            raise

        if not self._is_current(generation, address):
            logger.info("Discarding signature for %s, session was superseded", address)
            raise SessionSupersededError(f"Session for {address} was cleared before it completed")

        session = WalletSession(
            address=address,
            public_key=public_key,
            signature=signature,
            initialized_at=self._clock(),
        )
        self.store.set(session)
        self._state = SessionState.READY
        logger.info(
            "Wallet session ready for %s",
            address,
            extra={"address": address, "session_state": SessionState.READY.value},
        )

        await self._notify(session)
        return session

    def _check_signature(self, signature: bytes, public_key: bytes) -> None:
        if len(signature) != SIGNATURE_LENGTH:
            raise MalformedSignatureError(
                f"Expected a {SIGNATURE_LENGTH}-byte signature, got {len(signature)} bytes"
            )
        if not self._verify_signatures:
            return
        try:
            verify_solana_signature(self._challenge, signature, public_key)
        except ValueError as exc:
            raise MalformedSignatureError(str(exc)) from exc

    async def _notify(self, session: WalletSession) -> None:
        for sink in self._sinks:
            try:
                await sink.initialize_with_signature(session.signature, session.address)
            except Exception:
                logger.exception(
                    "Signature sink %s failed for %s",
                    type(sink).__name__,
                    session.address,
                )

    def _is_current(self, generation: int, address: str) -> bool:
        return generation == self._generation and self._current_address == address

    def _forget(self, address: str, future: asyncio.Future) -> None:
        if self._inflight.get(address) is future:
            del self._inflight[address]
        if not future.cancelled():
            # Mark the exception retrieved when every waiter went away.
            future.exception()


def _public_key_bytes(provider: WalletProvider, address: str) -> bytes:
    public_key = getattr(provider, "public_key", None)
    if public_key is None:
        raise WalletNotConnectedError("Wallet provider exposes no public key")

    try:
        expected = decode_address(address)
        if isinstance(public_key, str):
            actual = decode_address(public_key)
        else:
            actual = bytes(public_key)
    except ValueError as exc:
        raise WalletNotConnectedError(f"Invalid wallet address: {address}") from exc

    if actual != expected:
        raise WalletNotConnectedError(
            f"Wallet public key does not match connected address {address}"
        )
    return actual


__all__ = ["SessionManager", "SignatureSink", "WalletProvider"]
