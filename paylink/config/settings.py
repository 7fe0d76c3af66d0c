"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from functools import lru_cache

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from paylink.config.constants import (
    CHAIN_IDS,
    EXPLORER_TX_URLS,
    LOOKUP_DEBOUNCE_SECONDS,
    NETWORK_ALIASES,
    NETWORK_MAINNET,
    NETWORK_SEPOLIA,
    NOTE_MAX_LENGTH,
    RECEIPT_POLL_ATTEMPTS,
    RECEIPT_POLL_DELAY_SECONDS,
    SESSION_ADDRESS_HEADER,
    TOKEN_DECIMALS,
    TOKEN_SYMBOL,
    USDC_ADDRESSES,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Network selection: mainnet / sepolia (aliases: prod, production, testnet)
    network: str = ""

    # Ledger RPC (HTTP endpoint of an Arbitrum node)
    rpc_url: str = ""
    sender_private_key: str | None = None

    # Token
    token_contract_address: str | None = None
    token_symbol: str = TOKEN_SYMBOL
    token_decimals: int = Field(
        default=TOKEN_DECIMALS, ge=0, le=36, description="Token fixed precision"
    )

    # Directory / identity service
    directory_api_url: str = ""
    internal_api_key: str = ""

    # Receipt polling
    receipt_poll_attempts: int = Field(
        default=RECEIPT_POLL_ATTEMPTS, ge=1, description="Receipt lookups per reconciliation"
    )
    receipt_poll_delay: float = Field(
        default=RECEIPT_POLL_DELAY_SECONDS, ge=0, description="Seconds between receipt lookups"
    )

    # Recipient resolution
    lookup_debounce_seconds: float = Field(
        default=LOOKUP_DEBOUNCE_SECONDS, ge=0, description="Quiet period before a lookup"
    )

    # Notifications
    note_max_length: int = Field(
        default=NOTE_MAX_LENGTH, gt=0, description="Maximum payment note length"
    )

    # HTTP server
    server_host: str = "0.0.0.0"
    server_port: int = Field(
        default=8080, ge=1, le=65535, description="Notification API HTTP port"
    )
    # Header carrying the authenticated wallet address (set by the auth gateway)
    session_address_header: str = SESSION_ADDRESS_HEADER

    model_config = SettingsConfigDict(
        env_prefix="PAYLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        """Map network aliases to a canonical network name."""
        raw = (v or "").strip().lower()
        if not raw:
            return ""
        if raw not in NETWORK_ALIASES:
            raise ValueError(
                f"Unknown network: {v}. "
                f"Expected one of: {', '.join(sorted(NETWORK_ALIASES))}"
            )
        return NETWORK_ALIASES[raw]

    @field_validator("directory_api_url", "rpc_url")
    @classmethod
    def strip_trailing_slashes(cls, v: str) -> str:
        """Normalize base URLs."""
        return (v or "").strip().rstrip("/")

    @field_validator("internal_api_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        """Strip whitespace around the shared internal key."""
        return (v or "").strip()

    @field_validator("token_contract_address")
    @classmethod
    def validate_contract_address(cls, v: str | None) -> str | None:
        """Validate token contract address."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith("0x") or len(v) != 42:
            raise ValueError(
                f"Invalid contract address: {v}. "
                "Must start with 0x and be 42 characters long."
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f"Invalid contract address format: {v}") from exc
        return v.lower()

    @model_validator(mode="after")
    def set_network_defaults(self) -> "Settings":
        """Pick the network from the environment and default the token contract."""
        if not self.network:
            self.network = (
                NETWORK_MAINNET if self.environment == "production" else NETWORK_SEPOLIA
            )
        if not self.token_contract_address:
            self.token_contract_address = USDC_ADDRESSES[self.network]
        return self

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set PAYLINK_DEBUG=false in your .env file."
                )
            if not self.directory_api_url:
                raise ValueError(
                    "PAYLINK_DIRECTORY_API_URL is required in production. "
                    "Set the directory service base URL in .env file."
                )
            if not self.internal_api_key or len(self.internal_api_key) < 16:
                raise ValueError(
                    "PAYLINK_INTERNAL_API_KEY must be at least 16 characters in "
                    "production. Generate one with: openssl rand -hex 32"
                )
            if self.network != NETWORK_MAINNET:
                logger.warning(
                    f"Production environment is running against {self.network}. "
                    "Set PAYLINK_NETWORK=mainnet unless this is intentional."
                )
        return self

    @property
    def chain_id(self) -> int:
        """Chain ID of the configured network."""
        return CHAIN_IDS[self.network]

    @property
    def explorer_tx_url(self) -> str:
        """Block explorer transaction URL prefix."""
        return EXPLORER_TX_URLS[self.network]

    @property
    def is_testnet(self) -> bool:
        return self.network == NETWORK_SEPOLIA

    @property
    def is_directory_configured(self) -> bool:
        return bool(self.directory_api_url)


@lru_cache
def get_settings() -> Settings:
    """
    Get process-wide settings.

    Constructed lazily on first use so that importing the package never
    requires a configured environment.

    Returns:
        Settings instance
    """
    return Settings()
