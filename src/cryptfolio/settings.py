"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

load_dotenv()

SECRET_FIELDS = {"coingecko_api_key"}


class FetchMode(str, Enum):
    """How wallet fetches are dispatched."""

    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


class MergeKey(str, Enum):
    """Which fields identify an asset when merging across wallets."""

    SYMBOL_CHAIN = "symbol_chain"
    SYMBOL_CHAIN_CONTRACT = "symbol_chain_contract"


class CryptfolioSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with CRYPTFOLIO_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- price sources ---
    coingecko_api_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: SecretStr | None = None
    dexscreener_api_url: str = "https://api.dexscreener.com/latest/dex"
    dex_request_delay: float = Field(default=0.1, ge=0)

    # --- balance sources ---
    bitcoin_api_url: str = "https://blockchain.info"
    rpc_overrides: dict[str, str] = Field(default_factory=dict)

    # --- timeouts (seconds) ---
    price_timeout: float = Field(default=10.0, gt=0)
    dex_timeout: float = Field(default=5.0, gt=0)
    explorer_timeout: float = Field(default=10.0, gt=0)
    bitcoin_timeout: float = Field(default=10.0, gt=0)
    rpc_timeout: float = Field(default=30.0, gt=0)

    # --- aggregation ---
    min_token_value: float = Field(
        default=10.0,
        ge=0,
        description="Tokens valued below this USD amount are dropped. Native assets are exempt.",
    )
    top_n: int = Field(default=10, gt=0)
    fetch_mode: FetchMode = FetchMode.CONCURRENT
    merge_key: MergeKey = MergeKey.SYMBOL_CHAIN
    fetch_retries: int = Field(
        default=1,
        ge=1,
        description="Attempts per wallet fetch. 1 means single attempt, no retry.",
    )

    # --- snapshots ---
    snapshot_interval_minutes: float = Field(default=30.0, ge=0)
    snapshot_change_pct: float = Field(default=0.5, ge=0)
    snapshot_retention_days: float = Field(default=7.0, gt=0)

    # --- storage ---
    data_dir: Path = Path.home() / ".local" / "share" / "cryptfolio"

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CRYPTFOLIO_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("coingecko_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("rpc_overrides", mode="after")
    @classmethod
    def normalize_rpc_override_keys(cls, v: dict[str, str]) -> dict[str, str]:
        """Chain ids are matched case-insensitively."""
        return {chain.lower(): url for chain, url in v.items()}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("CRYPTFOLIO_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("cryptfolio.toml")
                    user_config = Path.home() / ".config" / "cryptfolio" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [cryptfolio]
                body = data.get("cryptfolio", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    def rpc_url_for(self, chain_id: str, default: str | None) -> str | None:
        """RPC endpoint for a chain, honoring configured overrides."""
        return self.rpc_overrides.get(chain_id.lower(), default)

    @property
    def wallets_path(self) -> Path:
        return self.data_dir / "wallets.json"

    @property
    def snapshots_path(self) -> Path:
        return self.data_dir / "snapshots.json"
