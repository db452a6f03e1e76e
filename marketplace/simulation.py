"""
Seeded marketplace simulation.

Registers a population of users, lists random auctions, has random bidders
raise the price on each, then settles everything. Useful for eyeballing how
often reserves are met for a given price/markup configuration.
"""

import itertools
import logging
from collections import Counter

import numpy as np
import pandas as pd
from omegaconf import DictConfig

from marketplace.config import ensure_config
from marketplace.directory import MarketplaceDirectory, Session, Settlement
from marketplace.event_logger import MarketEventLogger
from marketplace.reports import settlements_frame


class MarketSimulation:
    """
    Runs one simulated trading session through a MarketplaceDirectory.

    Time is logical: the wall clock never moves during a run, so no auction
    expires before it is settled, and bid timestamps come from a counter.
    """

    def __init__(self, config: DictConfig | None = None, event_logger: MarketEventLogger | None = None):
        self.config = ensure_config(config)
        self.sim = self.config.simulation
        self.logger = logging.getLogger(__name__)
        self.rng = np.random.default_rng(self.sim.seed)

        self._ticks = itertools.count(1)
        self.directory = MarketplaceDirectory(
            config=self.config,
            clock=lambda: 0.0,
            ticker=lambda: float(next(self._ticks)),
            event_logger=event_logger,
        )
        self.sessions: list[Session] = []
        self.rejections: Counter[str] = Counter()

    def _setup_users(self) -> None:
        for i in range(int(self.sim.num_users)):
            username = f"trader{i + 1}"
            self.directory.register_user(username, f"{username}@example.com")
            self.sessions.append(self.directory.login(username).value)

    def _list_auction(self, index: int) -> str:
        seller = self.sessions[self.rng.integers(0, len(self.sessions))]
        start = float(
            self.rng.integers(int(self.sim.min_starting_price), int(self.sim.max_starting_price) + 1)
        )
        reserve = round(start * self.rng.uniform(1.0, float(self.sim.max_reserve_markup)), 2)
        return self.directory.create_auction(
            seller,
            name=f"Lot {index + 1}",
            description=f"Simulated lot {index + 1} listed by {seller.username}",
            starting_price=start,
            reserve_price=reserve,
            duration_minutes=float(self.sim.duration_minutes),
        ).value

    def _run_bidding(self, item_id: str) -> None:
        auction = self.directory.get_auction(item_id).value
        for _ in range(int(self.sim.bids_per_auction)):
            bidder = self.sessions[self.rng.integers(0, len(self.sessions))]
            # Increment of 1-20% of the starting price over the current price
            step = max(1.0, auction.item.starting_price * self.rng.uniform(0.01, 0.2))
            amount = round(auction.current_price() + step, 2)
            result = self.directory.place_bid(bidder, item_id, amount)
            if not result.ok:
                self.rejections[result.message] += 1

    def run(self) -> pd.DataFrame:
        """
        Run the simulation.

        Returns:
            One row per auction with its settlement outcome
        """
        self._setup_users()

        item_ids = [self._list_auction(i) for i in range(int(self.sim.num_auctions))]
        for item_id in item_ids:
            self._run_bidding(item_id)

        settlements: list[Settlement] = [self.directory.settle(item_id).value for item_id in item_ids]
        auctions = {auction.item_id: auction for auction in self.directory.all_auctions()}
        results = settlements_frame(settlements, auctions)

        sold = int(results["sold"].sum()) if not results.empty else 0
        self.logger.info(f"Simulation settled {len(settlements)} auctions, {sold} sold")
        if self.rejections:
            self.logger.info(f"Rejected bids by reason: {dict(self.rejections)}")
        return results
