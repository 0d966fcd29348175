"""
Unit tests for whale_striker/config.py

Verifies YAML loading, field validation, tier ordering and secret lookup.
"""

import copy
import os
import tempfile
import unittest
from decimal import Decimal

import pytest
import yaml

from conftest import BASE_CONFIG, USDC, WETH
from whale_striker.config import (
    ConfigError,
    StrikerConfig,
    load_config,
    load_secrets,
)
from whale_striker.exceptions import ConfigurationError

ETH = 10**18


class TestStrikerConfigParsing(unittest.TestCase):
    """Test parsing of the config dictionary."""

    def setUp(self):
        self.config_dict = copy.deepcopy(BASE_CONFIG)

    def test_basic_fields(self):
        config = StrikerConfig.from_dict(self.config_dict)

        self.assertEqual(config.chain_id, 8453)
        self.assertEqual(config.whale_min_wei, 10 * ETH)
        self.assertEqual(config.gas_limit, 850000)
        self.assertEqual(config.safety_margin_wei, 5 * 10**15)
        self.assertEqual(config.fallback_loan_wei, 5 * ETH)
        self.assertEqual(config.borrow_fee_bps, 5)
        self.assertEqual(config.native_usd_rate, Decimal("3300"))

    def test_addresses_are_checksummed(self):
        config = StrikerConfig.from_dict(self.config_dict)

        self.assertEqual(config.borrow_asset.lower(), WETH)
        self.assertEqual(config.quote_asset, "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913")
        self.assertEqual(config.strike_path, [config.borrow_asset, config.quote_asset])

    def test_defaults(self):
        for key in ("borrow_fee_bps", "native_usd_rate", "fallback_loan_eth", "reconnect_delay_sec"):
            del self.config_dict[key]

        config = StrikerConfig.from_dict(self.config_dict)

        self.assertEqual(config.borrow_fee_bps, 5)
        self.assertEqual(config.native_usd_rate, Decimal("3300"))
        self.assertEqual(config.fallback_loan_wei, 5 * ETH)
        self.assertEqual(config.reconnect_delay_sec, 5.0)
        self.assertEqual(config.max_inflight_strikes, 0)
        self.assertIsNone(config.reserve_slot)
        self.assertFalse(config.dry_run)
        self.assertEqual(config.wss_url_env, "WSS_URL")
        self.assertEqual(config.private_key_env, "TREASURY_PRIVATE_KEY")

    def test_tiers_sorted_highest_first(self):
        self.config_dict["loan_tiers"] = [
            {"min_usd": 0, "amount_eth": "25"},
            {"min_usd": 200, "amount_eth": "100"},
            {"min_usd": 100, "amount_eth": "75"},
        ]

        config = StrikerConfig.from_dict(self.config_dict)

        self.assertEqual([t.min_usd for t in config.loan_tiers], [200, 100, 0])
        self.assertEqual(config.loan_tiers[0].amount_wei, 100 * ETH)

    def test_swap_topic(self):
        config = StrikerConfig.from_dict(self.config_dict)
        self.assertEqual(
            config.swap_topic,
            "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822",
        )


class TestStrikerConfigValidation(unittest.TestCase):
    """Test that malformed configs are rejected."""

    def setUp(self):
        self.config_dict = copy.deepcopy(BASE_CONFIG)

    def assertRejected(self, pattern):
        with self.assertRaisesRegex(ConfigError, pattern):
            StrikerConfig.from_dict(self.config_dict)

    def test_missing_target_contract(self):
        del self.config_dict["target_contract"]
        self.assertRejected("target_contract")

    def test_missing_whale_threshold(self):
        del self.config_dict["whale_min_eth"]
        self.assertRejected("whale_min_eth")

    def test_invalid_address(self):
        self.config_dict["pool_address"] = "0x1234"
        self.assertRejected("not a valid address")

    def test_chain_id_must_be_int(self):
        self.config_dict["chain_id"] = "8453"
        self.assertRejected("chain_id")

    def test_bool_is_not_an_int(self):
        self.config_dict["gas_limit"] = True
        self.assertRejected("gas_limit")

    def test_non_positive_gas_limit(self):
        self.config_dict["gas_limit"] = 0
        self.assertRejected("gas_limit must be positive")

    def test_same_borrow_and_quote(self):
        self.config_dict["assets"]["quote"] = WETH
        self.assertRejected("must differ")

    def test_empty_tiers(self):
        self.config_dict["loan_tiers"] = []
        self.assertRejected("non-empty")

    def test_tier_missing_amount(self):
        self.config_dict["loan_tiers"] = [{"min_usd": 0}]
        self.assertRejected("missing")

    def test_negative_ether_amount(self):
        self.config_dict["safety_margin_eth"] = "-1"
        self.assertRejected("must not be negative")

    def test_non_numeric_ether_amount(self):
        self.config_dict["whale_min_eth"] = "lots"
        self.assertRejected("must be numeric")

    def test_reserve_slot_range(self):
        self.config_dict["reserve_slot"] = 2
        self.assertRejected("reserve_slot")

    def test_borrow_fee_range(self):
        self.config_dict["borrow_fee_bps"] = 10_001
        self.assertRejected("borrow_fee_bps")

    def test_negative_inflight_bound(self):
        self.config_dict["max_inflight_strikes"] = -1
        self.assertRejected("max_inflight_strikes")

    def test_config_error_is_configuration_error(self):
        self.assertTrue(issubclass(ConfigError, ConfigurationError))


class TestLoadConfig(unittest.TestCase):
    """Test YAML file loading."""

    def _write(self, content):
        fd, path = tempfile.mkstemp(suffix=".yaml")
        with os.fdopen(fd, "w") as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path

    def test_load_valid_file(self):
        path = self._write(yaml.safe_dump(BASE_CONFIG))
        config = load_config(path)
        self.assertEqual(config.pool_address.lower(), BASE_CONFIG["pool_address"])

    def test_missing_file(self):
        with self.assertRaisesRegex(ConfigError, "not found"):
            load_config("/nonexistent/whale_striker.yaml")

    def test_invalid_yaml(self):
        path = self._write("chain_id: [unclosed")
        with self.assertRaisesRegex(ConfigError, "Failed to parse YAML"):
            load_config(path)

    def test_non_dict_yaml(self):
        path = self._write("- just\n- a list\n")
        with self.assertRaisesRegex(ConfigError, "dictionary"):
            load_config(path)

    def test_shipped_config_is_valid(self):
        path = os.path.join(
            os.path.dirname(__file__), "..", "..", "configs", "whale_striker.yaml"
        )
        config = load_config(path)
        self.assertEqual(config.chain_id, 8453)
        self.assertEqual(config.borrow_asset.lower(), WETH)
        self.assertEqual(config.quote_asset.lower(), USDC)


class TestLoadSecrets:
    """Secrets come from the environment variables named in config."""

    def test_reads_both(self, config, monkeypatch):
        monkeypatch.setenv("WSS_URL", "wss://base.example/ws")
        monkeypatch.setenv("TREASURY_PRIVATE_KEY", "0x" + "11" * 32)

        assert load_secrets(config) == ("wss://base.example/ws", "0x" + "11" * 32)

    def test_missing_url(self, config, monkeypatch):
        monkeypatch.delenv("WSS_URL", raising=False)
        monkeypatch.setenv("TREASURY_PRIVATE_KEY", "0x" + "11" * 32)

        with pytest.raises(ConfigError, match="WSS_URL"):
            load_secrets(config)

    def test_http_url_rejected(self, config, monkeypatch):
        monkeypatch.setenv("WSS_URL", "https://base.example")
        monkeypatch.setenv("TREASURY_PRIVATE_KEY", "0x" + "11" * 32)

        with pytest.raises(ConfigError, match="ws://"):
            load_secrets(config)

    def test_missing_key(self, config, monkeypatch):
        monkeypatch.setenv("WSS_URL", "wss://base.example/ws")
        monkeypatch.delenv("TREASURY_PRIVATE_KEY", raising=False)

        with pytest.raises(ConfigError, match="TREASURY_PRIVATE_KEY"):
            load_secrets(config)
