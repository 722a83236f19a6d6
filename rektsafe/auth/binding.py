"""
Binds the connected wallet to the session manager and name resolver.

UI code reports connect/disconnect/account-switch events through
``wallet_changed`` and reads a ``BindingState`` snapshot back.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .models import (
    BindingState,
    SessionError,
    SessionSupersededError,
    WalletSession,
)
from .session_manager import SessionManager, WalletProvider
from .solana_keys import shorten_address

if TYPE_CHECKING:
    from ..services.sns import NameResolver

logger = logging.getLogger(__name__)


class WalletSessionBinding:
    def __init__(self, manager: SessionManager, resolver: Optional[NameResolver] = None) -> None:
        self.manager = manager
        self.resolver = resolver

        self._address: Optional[str] = None
        self._provider: Optional[WalletProvider] = None
        self._session: Optional[WalletSession] = None
        self._is_loading = False
        self._error: Optional[str] = None

        self._display_name: Optional[str] = None
        self._name_request: Optional[str] = None
        self._is_resolving_name = False

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def session(self) -> Optional[WalletSession]:
        return self._session

    @property
    def display_label(self) -> Optional[str]:
        """Resolved name when known, otherwise the shortened address."""
        if self._display_name:
            return self._display_name
        return shorten_address(self._address) if self._address else None

    @property
    def state(self) -> BindingState:
        return BindingState(
            address=self._address,
            has_session=self.manager.is_session_valid_for_wallet(self._address),
            is_initialized=self._session is not None,
            is_loading=self._is_loading,
            last_error=self._error,
            display_name=self._display_name,
            is_resolving_name=self._is_resolving_name,
        )

    def wallet_changed(self, address: Optional[str], provider: Optional[WalletProvider]) -> None:
        """Record the wallet's current connection state."""
        previous = self._address

        if not address or provider is None:
            self._address = None
            self._provider = None
            self._reset_name()
            if previous is not None or self.manager.get_session() is not None:
                logger.info("Wallet disconnected, clearing session")
            self.clear_session()
            return

        self._address = address
        self._provider = provider

        if previous != address:
            self._reset_name()
            if not self.manager.is_session_valid_for_wallet(address):
                # Also discards any signature request still open for the old account.
                self.clear_session()

        existing = self.manager.get_session()
        if existing is not None and self.manager.is_session_valid_for_wallet(address):
            self._session = existing

    async def initialize_session(self) -> Optional[WalletSession]:
        """Run the signature exchange for the connected wallet.

        Errors are kept in ``state.last_error`` instead of being raised.
        """
        if self._provider is None or not self._address:
            self._error = "Wallet not connected"
            return None

        address = self._address
        if self.manager.is_session_valid_for_wallet(address):
            self._session = self.manager.get_session()
            return self._session

        self._is_loading = True
        self._error = None
        try:
            session = await self.manager.initialize_session(self._provider, address)
        except SessionSupersededError:
            logger.debug("Session request for %s superseded", address)
            return None
        except SessionError as exc:
            logger.error("Failed to initialize wallet session: %s", exc)
            if address == self._address:
                self._error = str(exc) or "Failed to initialize session"
                self._session = None
            return None
        finally:
            self._is_loading = False

        if address != self._address:
            return None
        self._session = session
        return session

    def clear_session(self) -> None:
        self.manager.clear_session()
        self._session = None
        self._error = None

    async def refresh_display_name(self) -> Optional[str]:
        """Resolve the display name for the connected address.

        A reply for an address that is no longer the latest request is dropped.
        """
        address = self._address
        self._name_request = address
        if not address or self.resolver is None:
            self._display_name = None
            return None

        self._is_resolving_name = True
        try:
            name = await self.resolver.resolve(address)
        finally:
            if self._name_request == address:
                self._is_resolving_name = False

        if self._name_request != address:
            logger.debug("Dropping stale name for %s", address)
            return None
        self._display_name = name
        return name

    def _reset_name(self) -> None:
        self._display_name = None
        self._name_request = None
        self._is_resolving_name = False


__all__ = ["WalletSessionBinding"]
