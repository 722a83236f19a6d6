import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from rektsafe.auth.binding import WalletSessionBinding
from rektsafe.auth.session_manager import SessionManager
from rektsafe.providers.local_wallet import LocalKeypairWallet


class GatedWallet(LocalKeypairWallet):
    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def sign_message(self, message: bytes) -> bytes:
        self.sign_count += 1
        await self.gate.wait()
        return self._signing_key.sign(message).signature


class RejectingWallet(LocalKeypairWallet):
    async def sign_message(self, message: bytes) -> bytes:
        self.sign_count += 1
        raise Exception("User rejected the request.")


async def _until(predicate) -> None:
    for _ in range(100):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def resolver():
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=None)
    return resolver


@pytest.mark.asyncio
async def test_initialize_without_wallet_reports_error():
    binding = WalletSessionBinding(SessionManager())

    session = await binding.initialize_session()

    assert session is None
    assert binding.state.last_error == "Wallet not connected"
    assert binding.state.has_session is False


@pytest.mark.asyncio
async def test_connected_wallet_initializes_once():
    wallet = LocalKeypairWallet()
    binding = WalletSessionBinding(SessionManager())
    binding.wallet_changed(wallet.address, wallet)

    session = await binding.initialize_session()
    again = await binding.initialize_session()

    assert session is not None
    assert again == session
    assert wallet.sign_count == 1
    state = binding.state
    assert state.has_session is True
    assert state.is_initialized is True
    assert state.is_loading is False
    assert state.last_error is None


@pytest.mark.asyncio
async def test_disconnect_clears_session():
    wallet = LocalKeypairWallet()
    manager = SessionManager()
    binding = WalletSessionBinding(manager)
    binding.wallet_changed(wallet.address, wallet)
    await binding.initialize_session()

    binding.wallet_changed(None, None)

    assert manager.get_session() is None
    assert binding.session is None
    assert binding.state.has_session is False
    assert binding.state.address is None


@pytest.mark.asyncio
async def test_existing_session_is_adopted_on_connect():
    wallet = LocalKeypairWallet()
    manager = SessionManager()
    await manager.initialize_session(wallet, wallet.address)

    binding = WalletSessionBinding(manager)
    binding.wallet_changed(wallet.address, wallet)

    assert binding.state.is_initialized is True
    assert binding.session == manager.get_session()
    assert wallet.sign_count == 1


@pytest.mark.asyncio
async def test_account_switch_clears_previous_session():
    wallet_a = LocalKeypairWallet()
    wallet_b = LocalKeypairWallet()
    manager = SessionManager()
    binding = WalletSessionBinding(manager)
    binding.wallet_changed(wallet_a.address, wallet_a)
    await binding.initialize_session()

    binding.wallet_changed(wallet_b.address, wallet_b)

    assert manager.get_session() is None
    assert binding.state.has_session is False
    assert binding.state.is_initialized is False


@pytest.mark.asyncio
async def test_rejection_is_exposed_as_last_error():
    wallet = RejectingWallet()
    binding = WalletSessionBinding(SessionManager())
    binding.wallet_changed(wallet.address, wallet)

    session = await binding.initialize_session()

    assert session is None
    state = binding.state
    assert "User rejected the request." in state.last_error
    assert state.is_loading is False
    assert state.has_session is False


@pytest.mark.asyncio
async def test_switch_during_prompt_does_not_store_old_session():
    wallet_a = GatedWallet()
    wallet_b = LocalKeypairWallet()
    manager = SessionManager()
    binding = WalletSessionBinding(manager)
    binding.wallet_changed(wallet_a.address, wallet_a)

    pending = asyncio.ensure_future(binding.initialize_session())
    await _until(lambda: wallet_a.sign_count == 1)
    assert binding.state.is_loading is True

    binding.wallet_changed(wallet_b.address, wallet_b)
    wallet_a.gate.set()

    assert await pending is None
    assert manager.get_session() is None
    assert binding.state.last_error is None
    assert binding.state.is_loading is False


@pytest.mark.asyncio
async def test_display_name_falls_back_to_short_address(resolver):
    wallet = LocalKeypairWallet()
    binding = WalletSessionBinding(SessionManager(), resolver)
    binding.wallet_changed(wallet.address, wallet)

    name = await binding.refresh_display_name()

    assert name is None
    assert binding.display_label == f"{wallet.address[:6]}...{wallet.address[-4:]}"
    resolver.resolve.assert_awaited_once_with(wallet.address)


@pytest.mark.asyncio
async def test_display_name_uses_resolved_name(resolver):
    resolver.resolve.return_value = "alice.sol"
    wallet = LocalKeypairWallet()
    binding = WalletSessionBinding(SessionManager(), resolver)
    binding.wallet_changed(wallet.address, wallet)

    await binding.refresh_display_name()

    assert binding.display_label == "alice.sol"
    assert binding.state.display_name == "alice.sol"
    assert binding.state.is_resolving_name is False


@pytest.mark.asyncio
async def test_stale_name_is_dropped_after_switch(resolver):
    wallet_a = LocalKeypairWallet()
    wallet_b = LocalKeypairWallet()
    release = asyncio.Event()

    async def slow_resolve(address):
        await release.wait()
        return "alice.sol" if address == wallet_a.address else None

    resolver.resolve = AsyncMock(side_effect=slow_resolve)
    binding = WalletSessionBinding(SessionManager(), resolver)
    binding.wallet_changed(wallet_a.address, wallet_a)

    pending = asyncio.ensure_future(binding.refresh_display_name())
    await _until(lambda: resolver.resolve.await_count == 1)
    assert binding.state.is_resolving_name is True

    binding.wallet_changed(wallet_b.address, wallet_b)
    release.set()

    assert await pending is None
    assert binding.state.display_name is None
    assert binding.display_label.startswith(wallet_b.address[:6])
