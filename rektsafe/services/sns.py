"""
Solana Name Service reverse resolution.

Maps a wallet address to its ``<name>.sol`` display name. The favorite
domain the owner picked wins; otherwise the first name registry account the
RPC node reports for that owner is used. Every failure degrades to "no name".
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from solders.pubkey import Pubkey

from ..auth.solana_keys import is_valid_solana_address
from ..config import settings
from ..providers.base import AccountProvider, MemcmpFilter

logger = logging.getLogger(__name__)


HASH_PREFIX = "SPL Name Service"
FAVORITE_DOMAIN_SEED = b"favorite_domain"

# NameRegistryState header: parent (32) + owner (32) + class (32).
REGISTRY_HEADER_LENGTH = 96
OWNER_OFFSET = 32

# Favorite domain accounts: 8-byte header, then the domain key.
FAVORITE_HEADER_LENGTH = 8
FAVORITE_RECORD_LENGTH = FAVORITE_HEADER_LENGTH + 32

_ZERO_KEY = bytes(32)


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one resolution tier."""

    outcome: LookupOutcome
    value: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def found(self) -> bool:
        return self.outcome == LookupOutcome.FOUND

    @classmethod
    def hit(cls, value: str) -> "LookupResult":
        return cls(LookupOutcome.FOUND, value=value)

    @classmethod
    def miss(cls) -> "LookupResult":
        return cls(LookupOutcome.NOT_FOUND)

    @classmethod
    def failed(cls, error: Exception) -> "LookupResult":
        return cls(LookupOutcome.ERROR, error=error)


def get_hashed_name(name: str) -> bytes:
    return hashlib.sha256((HASH_PREFIX + name).encode("utf-8")).digest()


def get_name_account_key(
    hashed_name: bytes,
    program_id: Pubkey,
    name_class: Optional[Pubkey] = None,
    name_parent: Optional[Pubkey] = None,
) -> Pubkey:
    seeds = [
        hashed_name,
        bytes(name_class) if name_class is not None else _ZERO_KEY,
        bytes(name_parent) if name_parent is not None else _ZERO_KEY,
    ]
    key, _ = Pubkey.find_program_address(seeds, program_id)
    return key


def get_favorite_domain_key(owner: Pubkey, program_id: Pubkey) -> Pubkey:
    key, _ = Pubkey.find_program_address([FAVORITE_DOMAIN_SEED, bytes(owner)], program_id)
    return key


def get_reverse_key(domain_key: Pubkey, program_id: Pubkey, reverse_lookup_class: Pubkey) -> Pubkey:
    hashed = get_hashed_name(str(domain_key))
    return get_name_account_key(hashed, program_id, name_class=reverse_lookup_class)


def deserialize_reverse(data: bytes) -> Optional[str]:
    """Read the name stored after the registry header of a reverse lookup account."""
    payload = data[REGISTRY_HEADER_LENGTH:]
    if len(payload) < 4:
        return None
    length = int.from_bytes(payload[:4], "little")
    raw = payload[4:4 + length]
    if len(raw) < length:
        return None
    name = raw.decode("utf-8").rstrip("\x00")
    return name or None


class NameResolver:
    """
    Resolve wallet addresses to SNS display names.

    Stateless per call, safe to run concurrently. Callers that re-resolve
    when the connected address changes must drop replies for addresses they
    no longer care about.
    """

    def __init__(
        self,
        rpc: AccountProvider,
        program_id: Optional[str] = None,
        reverse_lookup_class: Optional[str] = None,
        tld: Optional[str] = None,
    ) -> None:
        self.rpc = rpc
        self.program_id = Pubkey.from_string(program_id or settings.sns_program_id)
        self.reverse_lookup_class = Pubkey.from_string(
            reverse_lookup_class or settings.sns_reverse_lookup_class
        )
        self.tld = tld if tld is not None else settings.sns_tld

    async def resolve(self, address: Optional[str]) -> Optional[str]:
        """Return ``name + tld`` for ``address``, or None when it has no usable name."""
        if not address or not is_valid_solana_address(address):
            return None

        favorite = await self.find_favorite_domain(address)
        _log_tier("favorite_domain", address, favorite)
        if favorite.found:
            name = await self.reverse_lookup(favorite.value)
            _log_tier("reverse_lookup", favorite.value, name)
            if name.found:
                return f"{name.value}{self.tld}"

        owned = await self.find_owned_domain(address)
        _log_tier("owned_domains", address, owned)
        if owned.found:
            name = await self.reverse_lookup(owned.value)
            _log_tier("reverse_lookup", owned.value, name)
            if name.found:
                return f"{name.value}{self.tld}"

        return None

    async def find_favorite_domain(self, owner: str) -> LookupResult:
        try:
            key = get_favorite_domain_key(Pubkey.from_string(owner), self.program_id)
            data = await self.rpc.get_account_info(str(key))
        except Exception as e:
            return LookupResult.failed(e)

        if not data or len(data) < FAVORITE_RECORD_LENGTH:
            return LookupResult.miss()
        domain_key = Pubkey.from_bytes(data[FAVORITE_HEADER_LENGTH:FAVORITE_RECORD_LENGTH])
        return LookupResult.hit(str(domain_key))

    async def find_owned_domain(self, owner: str) -> LookupResult:
        """First name account owned by ``owner``.

        Ordering comes from the RPC node and is not stable across calls or
        providers; no tie-break is applied.
        """
        try:
            accounts = await self.rpc.get_program_accounts(
                str(self.program_id),
                [MemcmpFilter(offset=OWNER_OFFSET, value=owner)],
            )
        except Exception as e:
            return LookupResult.failed(e)

        if not accounts:
            return LookupResult.miss()
        return LookupResult.hit(accounts[0].address)

    async def reverse_lookup(self, domain_key: str) -> LookupResult:
        try:
            reverse_key = get_reverse_key(
                Pubkey.from_string(domain_key),
                self.program_id,
                self.reverse_lookup_class,
            )
            data = await self.rpc.get_account_info(str(reverse_key))
            name = deserialize_reverse(data) if data else None
        except Exception as e:
            return LookupResult.failed(e)

        if not name:
            return LookupResult.miss()
        return LookupResult.hit(name)


def _log_tier(tier: str, subject: str, result: LookupResult) -> None:
    fields = {"sns_tier": tier, "sns_outcome": result.outcome.value}
    if result.outcome == LookupOutcome.ERROR:
        logger.warning("SNS %s failed for %s: %s", tier, subject, result.error, extra=fields)
    else:
        logger.debug("SNS %s for %s: %s", tier, subject, result.outcome.value, extra=fields)


__all__ = [
    "LookupOutcome",
    "LookupResult",
    "NameResolver",
    "deserialize_reverse",
    "get_favorite_domain_key",
    "get_hashed_name",
    "get_name_account_key",
    "get_reverse_key",
]
