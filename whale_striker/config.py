"""
Configuration loading and validation for the whale striker.

The YAML file holds every tunable constant. Secrets (WSS endpoint and the
treasury private key) are read from environment variables named in the file
so they never land in version control or in the logs.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from web3 import Web3

from .exceptions import ConfigurationError

DEFAULT_STRIKE_SIGNATURE = "requestTitanLoan(address,uint256,address[])"
DEFAULT_SWAP_EVENT_SIGNATURE = "Swap(address,uint256,uint256,uint256,uint256,address)"

# Liquidity guard: never borrow more than reserve / 10
LIQUIDITY_GUARD_DIVISOR = 10


class ConfigError(ConfigurationError):
    """Raised when config is invalid or missing required fields."""

    pass


@dataclass(frozen=True)
class LoanTier:
    """Borrow ``amount_wei`` when the treasury is worth at least ``min_usd``."""

    min_usd: Decimal
    amount_wei: int


@dataclass(frozen=True)
class StrikerConfig:
    """
    Immutable process-wide configuration.

    Attributes:
        chain_id: Network chain id (8453 for Base)
        target_contract: Strike contract address
        borrow_asset: Address of the asset borrowed through the flash loan
        quote_asset: Address of the other asset on the strike path
        pool_address: V2-style pair whose reserves gate the loan size
        whale_min_wei: Minimum swap amount that counts as a whale
        gas_limit: Gas limit for simulation cost and submission
        safety_margin_wei: Extra cost buffer added to every strike
        loan_tiers: Tier table sorted by min_usd, highest first
        fallback_loan_wei: Loan amount used when reserves are unreadable
        borrow_fee_bps: Flash loan fee in basis points
        native_usd_rate: Fixed native-asset to USD rate for tier selection
        reserve_slot: 0/1 override for the borrowed asset's reserve slot;
            None means resolve it from the pool's token0/token1 at startup
        reconnect_delay_sec: Fixed delay before restarting after transport loss
        max_inflight_strikes: Concurrent handling bound; 0 means unbounded
        dry_run: If True, log the strike instead of submitting it
    """

    chain_id: int
    target_contract: str
    borrow_asset: str
    quote_asset: str
    pool_address: str
    whale_min_wei: int
    gas_limit: int
    safety_margin_wei: int
    loan_tiers: Tuple[LoanTier, ...]
    fallback_loan_wei: int = Web3.to_wei(5, "ether")
    borrow_fee_bps: int = 5
    native_usd_rate: Decimal = Decimal("3300")
    reserve_slot: Optional[int] = None
    reconnect_delay_sec: float = 5.0
    max_inflight_strikes: int = 0
    dry_run: bool = False
    strike_signature: str = DEFAULT_STRIKE_SIGNATURE
    swap_event_signature: str = DEFAULT_SWAP_EVENT_SIGNATURE
    wss_url_env: str = "WSS_URL"
    private_key_env: str = "TREASURY_PRIVATE_KEY"
    network: str = "base"

    @property
    def swap_topic(self) -> str:
        """Keccak topic hash of the swap event signature."""
        return Web3.to_hex(Web3.keccak(text=self.swap_event_signature))

    @property
    def strike_path(self) -> List[str]:
        return [self.borrow_asset, self.quote_asset]

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StrikerConfig":
        """
        Parse and validate config from dictionary.

        Raises:
            ConfigError: If required fields missing or invalid
        """
        chain_id = _get_required(config_dict, "chain_id", int)

        target_contract = _address(config_dict, "target_contract")
        pool_address = _address(config_dict, "pool_address")

        assets = _get_required(config_dict, "assets", dict)
        borrow_asset = _address(assets, "borrow")
        quote_asset = _address(assets, "quote")
        if borrow_asset == quote_asset:
            raise ConfigError("assets.borrow and assets.quote must differ")

        gas_limit = _get_required(config_dict, "gas_limit", int)
        if gas_limit <= 0:
            raise ConfigError(f"gas_limit must be positive, got {gas_limit}")

        borrow_fee_bps = int(config_dict.get("borrow_fee_bps", 5))
        if not 0 <= borrow_fee_bps <= 10_000:
            raise ConfigError(f"borrow_fee_bps must be in [0, 10000], got {borrow_fee_bps}")

        reserve_slot = config_dict.get("reserve_slot")
        if reserve_slot is not None and reserve_slot not in (0, 1):
            raise ConfigError(f"reserve_slot must be 0 or 1, got {reserve_slot}")

        reconnect_delay_sec = float(config_dict.get("reconnect_delay_sec", 5.0))
        if reconnect_delay_sec < 0:
            raise ConfigError("reconnect_delay_sec must not be negative")

        max_inflight = int(config_dict.get("max_inflight_strikes", 0))
        if max_inflight < 0:
            raise ConfigError("max_inflight_strikes must not be negative")

        return cls(
            chain_id=chain_id,
            network=config_dict.get("network", "base"),
            target_contract=target_contract,
            borrow_asset=borrow_asset,
            quote_asset=quote_asset,
            pool_address=pool_address,
            whale_min_wei=_ether(config_dict, "whale_min_eth", required=True),
            gas_limit=gas_limit,
            safety_margin_wei=_ether(config_dict, "safety_margin_eth", required=True),
            loan_tiers=_parse_tiers(config_dict.get("loan_tiers", [])),
            fallback_loan_wei=_ether(config_dict, "fallback_loan_eth", default="5"),
            borrow_fee_bps=borrow_fee_bps,
            native_usd_rate=_decimal(config_dict, "native_usd_rate", "3300"),
            reserve_slot=reserve_slot,
            reconnect_delay_sec=reconnect_delay_sec,
            max_inflight_strikes=max_inflight,
            dry_run=bool(config_dict.get("dry_run", False)),
            strike_signature=config_dict.get("strike_signature", DEFAULT_STRIKE_SIGNATURE),
            swap_event_signature=config_dict.get(
                "swap_event_signature", DEFAULT_SWAP_EVENT_SIGNATURE
            ),
            wss_url_env=config_dict.get("wss_url_env", "WSS_URL"),
            private_key_env=config_dict.get("private_key_env", "TREASURY_PRIVATE_KEY"),
        )


def _get_required(d: Dict, key: str, expected_type: type) -> Any:
    """Get required config field with type validation."""
    if key not in d:
        raise ConfigError(f"Missing required config field: {key}")
    val = d[key]
    if not isinstance(val, expected_type) or isinstance(val, bool):
        raise ConfigError(
            f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
        )
    return val


def _address(d: Dict, key: str) -> str:
    raw = _get_required(d, key, str)
    if not Web3.is_address(raw.lower()):
        raise ConfigError(f"Config field '{key}' is not a valid address: {raw}")
    return Web3.to_checksum_address(raw)


def _decimal(d: Dict, key: str, default: str) -> Decimal:
    try:
        value = Decimal(str(d.get(key, default)))
    except InvalidOperation as e:
        raise ConfigError(f"Config field '{key}' must be numeric") from e
    if value <= 0:
        raise ConfigError(f"Config field '{key}' must be positive")
    return value


def _ether(d: Dict, key: str, default: Optional[str] = None, required: bool = False) -> int:
    """Parse an ether-denominated field into wei."""
    if key not in d:
        if required:
            raise ConfigError(f"Missing required config field: {key}")
        d = {key: default}
    try:
        value = Decimal(str(d[key]))
    except InvalidOperation as e:
        raise ConfigError(f"Config field '{key}' must be numeric, got {d[key]!r}") from e
    if value < 0:
        raise ConfigError(f"Config field '{key}' must not be negative")
    return int(Web3.to_wei(value, "ether"))


def _parse_tiers(tiers_raw: List[Any]) -> Tuple[LoanTier, ...]:
    """Parse the loan tier table, highest threshold first."""
    if not isinstance(tiers_raw, list) or not tiers_raw:
        raise ConfigError("loan_tiers must be a non-empty list")

    tiers = []
    for i, tier in enumerate(tiers_raw):
        if not isinstance(tier, dict):
            raise ConfigError(f"Loan tier {i} must be a dict")
        if "min_usd" not in tier or "amount_eth" not in tier:
            raise ConfigError(f"Loan tier {i} missing 'min_usd' or 'amount_eth'")
        try:
            min_usd = Decimal(str(tier["min_usd"]))
        except InvalidOperation as e:
            raise ConfigError(f"Loan tier {i} min_usd must be numeric") from e
        tiers.append(LoanTier(min_usd=min_usd, amount_wei=_ether(tier, "amount_eth")))

    return tuple(sorted(tiers, key=lambda t: t.min_usd, reverse=True))


def load_config(config_path: str) -> StrikerConfig:
    """
    Load and validate config from YAML file.

    Raises:
        ConfigError: If config invalid or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    return StrikerConfig.from_dict(config_dict)


def load_secrets(config: StrikerConfig) -> Tuple[str, str]:
    """
    Read the WSS endpoint and treasury key from the environment.

    Returns:
        Tuple of (wss_url, private_key)

    Raises:
        ConfigError: If either variable is unset
    """
    load_dotenv()

    wss_url = (os.getenv(config.wss_url_env) or "").strip()
    if not wss_url:
        raise ConfigError(f"Environment variable {config.wss_url_env} not set")
    if not wss_url.startswith(("ws://", "wss://")):
        raise ConfigError(f"{config.wss_url_env} must be a ws:// or wss:// URL")

    private_key = (os.getenv(config.private_key_env) or "").strip()
    if not private_key:
        raise ConfigError(f"Environment variable {config.private_key_env} not set")

    return wss_url, private_key
