"""
Environment configuration and Web3 connection.

Settings are read from the process environment, after loading a ``.env``
file from the working directory if one exists.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from eth_utils import is_address, is_hex, remove_0x_prefix, to_checksum_address
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_RECEIPT_TIMEOUT = 300

_TRUE_VALUES = ("1", "true", "yes", "on")


def _int_from_env(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _private_key_from_env() -> Optional[str]:
    raw = (os.getenv("PRIVATE_KEY") or "").strip()
    if not raw:
        return None
    digits = remove_0x_prefix(raw)
    if len(digits) != 64 or not is_hex(digits):
        raise ConfigurationError("PRIVATE_KEY must be 32 bytes of hex")
    return raw


def _address_from_env(name: str) -> Optional[str]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    if not is_address(raw.lower()):
        raise ConfigurationError(f"{name} is not an address: {raw!r}")
    return to_checksum_address(raw)


def _log_level_from_env() -> str:
    level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown LOG_LEVEL: {level!r}")
    return level


@dataclass(frozen=True)
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    private_key: Optional[str] = None
    deployer_address: Optional[str] = None
    gas_price: Optional[int] = None
    gas_limit: Optional[int] = None
    receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT
    poa_chain: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from environment variables (and ``.env``)."""
        if dotenv_path is not None and not os.path.isfile(dotenv_path):
            raise ConfigurationError(f"dotenv file not found: {dotenv_path}")
        load_dotenv(dotenv_path)
        return cls(
            rpc_url=os.getenv("RPC_URL", DEFAULT_RPC_URL),
            private_key=_private_key_from_env(),
            deployer_address=_address_from_env("DEPLOYER_ADDRESS"),
            gas_price=_int_from_env("GAS_PRICE"),
            gas_limit=_int_from_env("GAS_LIMIT"),
            receipt_timeout=_int_from_env("RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
            poa_chain=os.getenv("POA_CHAIN", "").strip().lower() in _TRUE_VALUES,
            log_level=_log_level_from_env(),
            log_file=os.getenv("LOG_FILE") or None,
        )


def connect(settings: Settings) -> Web3:
    """Open an HTTP connection to the configured node."""
    w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
    if settings.poa_chain:
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    if not w3.is_connected():
        raise ConnectionError(f"Could not connect to RPC URL: {settings.rpc_url}")
    logger.info(f"Connected to blockchain at {settings.rpc_url}")
    return w3


def local_account(w3: Web3, settings: Settings):
    """Signing account for ``PRIVATE_KEY``, or None to use node accounts."""
    if not settings.private_key:
        return None
    try:
        account = w3.eth.account.from_key(settings.private_key)
    except ValueError as e:
        raise ConfigurationError(f"PRIVATE_KEY is not a usable key: {e}") from e
    logger.info(f"Using deployer account: {account.address}")
    return account
