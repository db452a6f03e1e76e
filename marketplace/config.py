"""
Configuration and logging setup.

Defaults live in DEFAULT_CONFIG and are turned into an OmegaConf DictConfig.
A YAML file (same layout as conf/config.yaml) and dotlist overrides such as
``marketplace.initial_balance=250`` are merged on top, in that order.
"""

import logging
from pathlib import Path
from typing import Sequence

from omegaconf import DictConfig, OmegaConf

DEFAULT_CONFIG = {
    "marketplace": {
        "initial_balance": 1000.0,
        "top_bidders_limit": 5,
        "user_id_prefix": "USER",
        "item_id_prefix": "ITEM",
    },
    "logging": {
        "level": "WARNING",
        "format": "[%(asctime)s][%(name)s][%(levelname)s] - %(message)s",
    },
    "events": {
        "enabled": False,
        "path": "logs/marketplace_events.jsonl",
    },
    "simulation": {
        "num_users": 8,
        "num_auctions": 20,
        "bids_per_auction": 6,
        "min_starting_price": 10,
        "max_starting_price": 200,
        "max_reserve_markup": 1.5,  # reserve = start * U(1, markup)
        "duration_minutes": 60,
        "seed": 42,
    },
}


def load_config(
    path: str | Path | None = None,
    overrides: Sequence[str] | None = None,
) -> DictConfig:
    """
    Build the effective configuration.

    Args:
        path: Optional YAML file merged over the defaults
        overrides: Optional dotlist entries (``key.sub=value``) merged last

    Returns:
        The merged DictConfig
    """
    cfg = OmegaConf.create(DEFAULT_CONFIG)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    return cfg


def ensure_config(config: DictConfig | None) -> DictConfig:
    """Fill any missing keys of a caller-supplied config from the defaults."""
    if config is None:
        return load_config()
    return OmegaConf.merge(OmegaConf.create(DEFAULT_CONFIG), config)


def configure_logging(config: DictConfig) -> None:
    """Set the root log level and attach a stream handler if none exists."""
    log_level = getattr(logging, str(config.logging.level).upper())

    logging.getLogger().setLevel(log_level)
    logging.getLogger("marketplace").setLevel(log_level)

    if not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.logging.format))
        logging.getLogger().addHandler(handler)
