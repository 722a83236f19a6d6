#!/usr/bin/env python3
"""Simple CLI for exercising wallet sessions and SNS lookups locally"""

import argparse
import asyncio
import binascii
from typing import Optional

from rektsafe.auth import SessionManager, WalletSessionBinding
from rektsafe.auth.solana_keys import is_valid_solana_address, shorten_address
from rektsafe.logging_config import setup_logging
from rektsafe.providers import LocalKeypairWallet, SolanaRpcProvider
from rektsafe.services import NameResolver


async def cli_resolve(address: str, rpc_url: Optional[str] = None) -> Optional[str]:
    """CLI command to resolve a wallet's display name"""
    if not is_valid_solana_address(address):
        print(f"❌ Not a Solana address: {address}")
        return None

    print(f"🔍 Resolving SNS name for {address}...")
    resolver = NameResolver(SolanaRpcProvider(rpc_url=rpc_url))
    name = await resolver.resolve(address)

    if name:
        print(f"✅ {name} ({shorten_address(address, 4, 4)})")
    else:
        print(f"ℹ️  No name found, showing {shorten_address(address)}")
    return name


async def cli_sign_in(seed_hex: Optional[str] = None, rpc_url: Optional[str] = None) -> None:
    """Run the session protocol against a local keypair wallet"""
    if seed_hex:
        try:
            seed = binascii.unhexlify(seed_hex)
        except (binascii.Error, ValueError):
            print("❌ Seed must be hex encoded")
            return
        if len(seed) != 32:
            print("❌ Seed must be 32 bytes")
            return
        wallet = LocalKeypairWallet.from_seed(seed)
    else:
        wallet = LocalKeypairWallet()

    binding = WalletSessionBinding(
        SessionManager(),
        NameResolver(SolanaRpcProvider(rpc_url=rpc_url)),
    )
    binding.wallet_changed(wallet.address, wallet)

    print(f"🔐 Signing session challenge as {wallet.address}...")
    session = await binding.initialize_session()
    if session is None:
        print(f"❌ Error: {binding.state.last_error}")
        return

    # Second call must reuse the session without prompting again
    await binding.initialize_session()

    await binding.refresh_display_name()

    print("\n🪪 Wallet Session")
    print("=" * 50)
    print(f"Wallet: {binding.display_label}")
    print(f"Address: {session.address}")
    print(f"Signature: {shorten_address(session.signature_base58, 8, 8)}")
    print(f"Derived key: {session.derived_address()}")
    print(f"Signature prompts: {wallet.sign_count}")


async def cli_health(rpc_url: Optional[str] = None) -> None:
    provider = SolanaRpcProvider(rpc_url=rpc_url)
    status = await provider.health_check()
    icon = "✅" if status.get("status") == "healthy" else "⚠️ "
    print(f"{icon} {provider.rpc_url}: {status}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RektSafe wallet session CLI")
    parser.add_argument("--rpc-url", help="Override the Solana RPC endpoint")
    parser.add_argument("--log-level", help="Logging level (default: from settings)")
    subparsers = parser.add_subparsers(dest="command")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a wallet's SNS name")
    resolve_parser.add_argument("address", help="Wallet address")

    sign_in_parser = subparsers.add_parser("sign-in", help="Open a session with a local keypair")
    sign_in_parser.add_argument("--seed", help="Hex encoded 32-byte keypair seed (default: random)")

    subparsers.add_parser("health", help="Check the RPC endpoint")

    return parser


async def main(argv: Optional[list] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging(args.log_level)
    command = args.command.lower()

    if command == "resolve":
        await cli_resolve(args.address, args.rpc_url)

    elif command == "sign-in":
        await cli_sign_in(args.seed, args.rpc_url)

    elif command == "health":
        await cli_health(args.rpc_url)

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
