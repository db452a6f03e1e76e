# tests/unit/marketplace/test_config.py
"""Tests for configuration loading and logging setup."""

import logging

from omegaconf import OmegaConf

from marketplace.config import DEFAULT_CONFIG, configure_logging, ensure_config, load_config


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config()
        assert cfg.marketplace.initial_balance == 1000.0
        assert cfg.marketplace.top_bidders_limit == 5
        assert cfg.events.enabled is False

    def test_yaml_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("marketplace:\n  initial_balance: 50\n")
        cfg = load_config(path)
        assert cfg.marketplace.initial_balance == 50
        assert cfg.marketplace.item_id_prefix == "ITEM"

    def test_overrides_applied_last(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("marketplace:\n  initial_balance: 50\n")
        cfg = load_config(path, ["marketplace.initial_balance=75", "events.enabled=true"])
        assert cfg.marketplace.initial_balance == 75
        assert cfg.events.enabled is True

    def test_ensure_config_fills_missing_keys(self):
        cfg = ensure_config(OmegaConf.create({"simulation": {"seed": 7}}))
        assert cfg.simulation.seed == 7
        assert cfg.simulation.num_users == DEFAULT_CONFIG["simulation"]["num_users"]
        assert cfg.marketplace.user_id_prefix == "USER"


class TestConfigureLogging:
    def test_sets_package_level(self):
        configure_logging(load_config(overrides=["logging.level=debug"]))
        assert logging.getLogger("marketplace").level == logging.DEBUG
        configure_logging(load_config())
        assert logging.getLogger("marketplace").level == logging.WARNING
