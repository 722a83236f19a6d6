import os

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the RPC endpoint names the web client used to export."""

        super().model_post_init(__context)

        if "solana_rpc_url" not in self.model_fields_set:
            fallback = os.getenv("NEXT_PUBLIC_HELIUS_RPC") or os.getenv("NEXT_PUBLIC_SOLANA_RPC")
            if fallback:
                object.__setattr__(self, "solana_rpc_url", fallback)

    log_level: str = Field(default="INFO", description="Logging level")

    # Solana RPC
    solana_rpc_url: str = Field(
        default=DEFAULT_SOLANA_RPC_URL,
        description="JSON-RPC endpoint used for account reads",
        validation_alias=AliasChoices("solana_rpc_url", "helius_rpc", "solana_rpc"),
    )
    rpc_timeout_seconds: int = Field(default=20, description="Per-request RPC timeout")

    # Solana Name Service
    sns_program_id: str = Field(
        default="namesLPneVptA9Z5rqUDD9tMTWEJwofgaYwp8cawRkX",
        description="Name service program that owns name registry accounts",
    )
    sns_reverse_lookup_class: str = Field(
        default="33m47vH6Eav6jr5Ry86XjhRft2jRBLDnDgPSHoquXi2Z",
        description="Class key of reverse lookup registry accounts",
    )
    sns_tld: str = Field(default=".sol", description="Suffix appended to resolved names")

    # Wallet session
    session_challenge_message: str = Field(
        default="Welcome to RektSafe. For Cypherpunks, By Cypherpunks",
        description="Fixed message signed to open a wallet session",
    )
    verify_signatures: bool = Field(
        default=True,
        description="Verify the ed25519 signature against the wallet key before committing a session",
    )

    @property
    def challenge_bytes(self) -> bytes:
        return self.session_challenge_message.encode("utf-8")


# Global settings instance
settings = Settings()
