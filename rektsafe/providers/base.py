from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


@dataclass(frozen=True)
class MemcmpFilter:
    """Match accounts whose data equals ``value`` (base58) at ``offset``."""

    offset: int
    value: str

    def to_rpc(self) -> Dict[str, Any]:
        return {"memcmp": {"offset": self.offset, "bytes": self.value}}


@dataclass(frozen=True)
class ProgramAccount:
    address: str
    data: bytes


class AccountProvider(Provider):
    """Provider for raw on-chain account reads"""

    @abstractmethod
    async def get_account_info(self, address: str) -> Optional[bytes]:
        """Return the account's raw data, or None when the account does not exist"""
        pass

    @abstractmethod
    async def get_program_accounts(
        self,
        program_id: str,
        filters: Sequence[MemcmpFilter] = (),
    ) -> List[ProgramAccount]:
        """Return accounts owned by ``program_id`` matching every filter, in RPC order"""
        pass
