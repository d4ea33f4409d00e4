"""Configuration system for Kangaroo.

Loads the bot config from ``kangaroo.yaml`` (or the file named by
``KANGAROO_CONFIG``), supports environment variable expansion, and seeds the
token registry and the simulated network.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from kangaroo.network.tokens import KNOWN_TOKENS, Token


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class SimulatedNetworkConfig(BaseModel):
    """Seed for the in-memory network used by demos and tests.

    ``balances`` maps a user id to ``{ticker: amount}``; ``activated`` lists
    user ids whose wallets start unlocked.  Amounts are decimal strings.
    """

    transfer_fee: str = "0.000123456789"
    new_account_fee: str = "0.0001"
    activation_fee: str = "0.00234567"
    balances: dict[str, dict[str, str]] = Field(default_factory=dict)
    activated: list[str] = Field(default_factory=list)
    prices: dict[str, str] = Field(default_factory=dict)


class NetworkConfig(BaseModel):
    """Which Layer 2 network the bot talks to."""

    backend: Literal["rpc", "simulated"] = "simulated"
    rpc_url: str = "https://api.zksync.io/jsrpc"
    timeout_seconds: float = 30.0
    simulated: SimulatedNetworkConfig = Field(default_factory=SimulatedNetworkConfig)


class StorageConfig(BaseModel):
    """Custodial key and token registry storage."""

    db_path: str = "kangaroo.db"
    key_password: str = ""          # ${KANGAROO_KEY_PASSWORD}; empty stores raw keys
    kdf_iterations: Optional[int] = None


class DiscordConfig(BaseModel):
    """Chat platform credentials for editing deferred interaction responses."""

    application_id: str = ""        # ${DISCORD_APPLICATION_ID}
    bot_token: str = ""             # ${DISCORD_BOT_TOKEN}
    public_key: str = ""            # ${DISCORD_PUBLIC_KEY}, hex Ed25519 key
    use_security: bool = True       # reject interactions without a valid signature
    api_base: str = "https://discord.com/api/v8"
    interact_endpoint: str = "/interactions"

    @field_validator("interact_endpoint")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8080


class TokenSeed(BaseModel):
    ticker: str
    name: str
    decimals: int = 18

    def to_token(self) -> Token:
        return Token(ticker=self.ticker, name=self.name, decimals=self.decimals)


class SafetyConfig(BaseModel):
    """Extra protections on top of the stateless confirm protocol."""

    confirm_dedup_seconds: float = 0.0   # 0 = every confirm executes


class LoggingConfig(BaseModel):
    level: str = "INFO"


def _default_tokens() -> list[TokenSeed]:
    return [
        TokenSeed(ticker=t.ticker, name=t.name, decimals=t.decimals)
        for t in (KNOWN_TOKENS["ETH"], KNOWN_TOKENS["DAI"])
    ]


class KangarooConfig(BaseModel):
    """Root configuration object for the bot."""

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    tokens: list[TokenSeed] = Field(default_factory=_default_tokens)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_NAME = "kangaroo.yaml"


def get_config_path(path: Path | str | None = None) -> Path:
    """Resolve the config file: *path*, then ``$KANGAROO_CONFIG``, then ``./kangaroo.yaml``."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get("KANGAROO_CONFIG")
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def default_config() -> KangarooConfig:
    return KangarooConfig()


def load_config(path: Path) -> KangarooConfig:
    """Load and validate a configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.
    """
    raw_text = Path(path).read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return KangarooConfig.model_validate(expanded)


def load_or_default(path: Path | str | None = None) -> KangarooConfig:
    """Like :func:`load_config`, but a missing file yields the defaults."""
    config_path = get_config_path(path)
    if not config_path.exists():
        return default_config()
    return load_config(config_path)


def save_config(config: KangarooConfig, path: Path) -> None:
    """Serialize a :class:`KangarooConfig` to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)


def configure_logging(config: LoggingConfig) -> None:
    """Route the ``kangaroo.*`` loggers through rich at the configured level."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=config.level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
