"""In-memory holder for the single live wallet session."""

from __future__ import annotations

from typing import Optional

from .models import WalletSession


class SessionStore:
    """
    Single-slot session holder.

    Nothing is persisted; a new process starts empty. Only the session
    manager writes to the slot, every other reader gets a snapshot that may
    go stale as soon as the wallet changes.
    """

    def __init__(self) -> None:
        self._session: Optional[WalletSession] = None

    def get(self) -> Optional[WalletSession]:
        return self._session

    def set(self, session: WalletSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None
