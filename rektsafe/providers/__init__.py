from .base import AccountProvider, MemcmpFilter, ProgramAccount, Provider
from .local_wallet import LocalKeypairWallet
from .solana_rpc import SolanaRpcError, SolanaRpcProvider

__all__ = [
    "AccountProvider",
    "MemcmpFilter",
    "ProgramAccount",
    "Provider",
    "LocalKeypairWallet",
    "SolanaRpcError",
    "SolanaRpcProvider",
]
