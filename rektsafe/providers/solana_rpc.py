"""JSON-RPC backed Solana account reader."""

from __future__ import annotations

import base64
import binascii
import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import settings
from .base import AccountProvider, MemcmpFilter, ProgramAccount

logger = logging.getLogger(__name__)


class SolanaRpcError(Exception):
    """RPC transport failure or an error member in the JSON-RPC reply."""
    pass


class SolanaRpcProvider(AccountProvider):
    """Read accounts through a Solana JSON-RPC endpoint (mainnet, Helius, ...)."""

    name = "solana-rpc"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        commitment: str = "confirmed",
    ) -> None:
        self.rpc_url = rpc_url or settings.solana_rpc_url
        self.timeout_s = timeout_s or settings.rpc_timeout_seconds
        self.commitment = commitment
        self._client = client
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "RPC URL not configured"}
        try:
            result = await self._call("getHealth", [])
        except SolanaRpcError as e:
            return {"status": "error", "reason": str(e)}
        return {"status": "healthy" if result == "ok" else "degraded", "result": result}

    async def get_account_info(self, address: str) -> Optional[bytes]:
        result = await self._call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.commitment}],
        )
        if not isinstance(result, dict):
            raise SolanaRpcError("Unexpected getAccountInfo response")

        value = result.get("value")
        if value is None:
            return None
        return _decode_account_data(value.get("data"))

    async def get_program_accounts(
        self,
        program_id: str,
        filters: Sequence[MemcmpFilter] = (),
    ) -> List[ProgramAccount]:
        config: Dict[str, Any] = {"encoding": "base64", "commitment": self.commitment}
        if filters:
            config["filters"] = [f.to_rpc() for f in filters]

        result = await self._call("getProgramAccounts", [program_id, config])
        if not isinstance(result, list):
            raise SolanaRpcError("Unexpected getProgramAccounts response")

        accounts: List[ProgramAccount] = []
        for item in result:
            if not isinstance(item, dict) or not item.get("pubkey"):
                continue
            account = item.get("account") or {}
            accounts.append(
                ProgramAccount(
                    address=item["pubkey"],
                    data=_decode_account_data(account.get("data")),
                )
            )
        return accounts

    async def _call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            if self._client is not None:
                response = await self._client.post(self.rpc_url, json=payload, timeout=self.timeout_s)
                response.raise_for_status()
                data = response.json()
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    response = await client.post(
                        self.rpc_url,
                        json=payload,
                        headers={"Content-Type": "application/json"},
                    )
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPError as e:
            raise SolanaRpcError(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise SolanaRpcError(f"{method} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise SolanaRpcError(f"Unexpected {method} response")
        if "error" in data:
            raise SolanaRpcError(f"Solana RPC error: {data['error']}")

        logger.debug("RPC %s ok", method)
        return data.get("result")


def _decode_account_data(data: Any) -> bytes:
    # RPC returns base64 data as [payload, "base64"].
    if not data:
        return b""
    if isinstance(data, list):
        payload, encoding = data[0], (data[1] if len(data) > 1 else "base64")
    else:
        payload, encoding = data, "base64"
    if encoding != "base64":
        raise SolanaRpcError(f"Unsupported account data encoding: {encoding}")
    try:
        return base64.b64decode(payload)
    except (ValueError, binascii.Error) as e:
        raise SolanaRpcError("Invalid base64 account data") from e
