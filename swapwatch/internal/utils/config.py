# swapwatch/internal/utils/config.py

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from web3 import Web3

from swapwatch.internal.blockchain.types import TokenSpec
from swapwatch.internal.utils import helpers

DEFAULT_ABI_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "contracts",
    "uniswap_v3_pool_abi.json",
)

# Uniswap V3 DAI/USDC 0.01% pool on mainnet
DEFAULT_CONTRACT_ADDRESS = "0x5777d92f208679DB4b9778590Fa3CAB3aC9e2168"
DEFAULT_TOKEN0 = TokenSpec(symbol="DAI", decimals=18)
DEFAULT_TOKEN1 = TokenSpec(symbol="USDC", decimals=6)


class ConfigError(ValueError):
    pass


@dataclass
class WatcherConfig:
    eth_node_url: str
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    abi_path: str = DEFAULT_ABI_PATH
    event_name: str = "Swap"
    token0: TokenSpec = field(default_factory=lambda: DEFAULT_TOKEN0)
    token1: TokenSpec = field(default_factory=lambda: DEFAULT_TOKEN1)
    poll_interval: float = 1.0
    request_timeout: float = 30.0
    retention_blocks: int = 0
    reorg_check_workers: int = 1
    trades_kept: int = 100
    auto_start: bool = True


def _token_from(data: Optional[Dict[str, Any]], fallback: TokenSpec) -> TokenSpec:
    if not data:
        return fallback
    try:
        return TokenSpec(symbol=str(data["symbol"]), decimals=int(data["decimals"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid token entry {data!r}: {e}") from e


def _read_config_file(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, "r") as json_file:
            data = json.load(json_file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file '{config_path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{config_path}' must contain a JSON object")
    return data


def load_config(config_path: Optional[str] = None, **overrides) -> WatcherConfig:
    """
    Builds the watcher configuration.

    Precedence (lowest to highest): built-in defaults, the JSON file at
    `config_path` (or CONFIG_PATH), environment variables, explicit keyword
    overrides (used by the CLI). Overrides equal to None are ignored.
    """
    load_dotenv()

    config_path = config_path or helpers.get_env_str("CONFIG_PATH", default="")
    data = _read_config_file(config_path) if config_path else {}

    eth_node_url = helpers.get_env_str("ETH_NODE_URL", default=data.get("eth_node_url", ""))
    contract_address = helpers.get_env_str(
        "CONTRACT_ADDRESS", default=data.get("contract_address", DEFAULT_CONTRACT_ADDRESS)
    )
    abi_path = helpers.get_env_str("ABI_PATH", default=data.get("abi_path", DEFAULT_ABI_PATH))
    event_name = helpers.get_env_str("EVENT_NAME", default=data.get("event_name", "Swap"))

    try:
        tunables = dict(
            poll_interval=helpers.get_env_float("POLL_INTERVAL", default=data.get("poll_interval", 1.0)),
            request_timeout=helpers.get_env_float("REQUEST_TIMEOUT", default=data.get("request_timeout", 30.0)),
            retention_blocks=helpers.get_env_int("RETENTION_BLOCKS", default=data.get("retention_blocks", 0)),
            reorg_check_workers=helpers.get_env_int("REORG_CHECK_WORKERS", default=data.get("reorg_check_workers", 1)),
            trades_kept=helpers.get_env_int("TRADES_KEPT", default=data.get("trades_kept", 100)),
            auto_start=helpers.get_env_bool("AUTO_START", default=data.get("auto_start", True)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid interval or size setting: {e}") from e

    values = dict(
        eth_node_url=eth_node_url,
        contract_address=contract_address,
        abi_path=abi_path,
        event_name=event_name,
        token0=_token_from(data.get("token0"), DEFAULT_TOKEN0),
        token1=_token_from(data.get("token1"), DEFAULT_TOKEN1),
        **tunables,
    )
    values.update({k: v for k, v in overrides.items() if v is not None})

    config = WatcherConfig(**values)
    validate_config(config)
    return config


def validate_config(config: WatcherConfig) -> None:
    url = config.eth_node_url
    if not url:
        raise ConfigError("eth_node_url is required (set ETH_NODE_URL or 'eth_node_url' in CONFIG_PATH)")
    if url.startswith("ws://") or url.startswith("wss://"):
        raise ConfigError(
            "Web3.py v7 does not support synchronous WebSockets. "
            "Please use an HTTP/HTTPS endpoint (e.g., http://...)"
        )
    if not (url.startswith("http://") or url.startswith("https://")):
        raise ConfigError("eth_node_url must start with http:// or https://")

    if not Web3.is_address(config.contract_address):
        raise ConfigError(f"Invalid contract address: {config.contract_address}")
    if not os.path.isfile(config.abi_path):
        raise ConfigError(f"ABI file not found: {config.abi_path}")

    if config.poll_interval <= 0:
        raise ConfigError("poll_interval must be positive")
    if config.request_timeout <= 0:
        raise ConfigError("request_timeout must be positive")
    if config.retention_blocks < 0:
        raise ConfigError("retention_blocks must be >= 0")
    if config.reorg_check_workers < 1:
        raise ConfigError("reorg_check_workers must be >= 1")
