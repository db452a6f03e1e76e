"""
Run Simulation Script.

Usage:
    python scripts/run_simulation.py simulation.num_auctions=50 simulation.seed=7
"""

import logging
import os

import hydra
from omegaconf import DictConfig

from marketplace.config import configure_logging
from marketplace.event_logger import MarketEventLogger
from marketplace.simulation import MarketSimulation


@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig):
    configure_logging(cfg)

    event_logger = MarketEventLogger(cfg.events.path) if cfg.events.enabled else None
    try:
        results = MarketSimulation(cfg, event_logger=event_logger).run()
    finally:
        if event_logger is not None:
            event_logger.close()

    output_dir = cfg.simulation.output_dir
    os.makedirs(output_dir, exist_ok=True)
    results.to_csv(os.path.join(output_dir, "settlements.csv"), index=False)

    logging.info(f"Results saved to {output_dir}")
    logging.info("Outcome counts:")
    print(results["outcome"].value_counts())


if __name__ == "__main__":
    main()
