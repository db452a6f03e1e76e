"""
marketplace/auction.py - The bidding engine for a single auction.

One Auction wraps one Item and owns everything about its bid stream:

- Validation of incoming bids (active, above starting price, above the
  current highest, not from the seller), first failure wins
- A ranked view of all accepted bids: amount descending, then earlier
  timestamp, then arrival order
- The append-only chronological bid log
- Per-bidder highest amounts
- The reserve decision and the explicit close

Expiry is never stored. An auction whose end time has passed answers queries
exactly like an open one but refuses new bids; only close() flips the flag.
"""

import bisect
import logging
import math
import time
from enum import Enum
from typing import Callable

from marketplace.errors import Rejection, Result
from marketplace.ledger import Bid, Item, empty_bid

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class AuctionState(Enum):
    OPEN = "open"
    EXPIRED = "expired"
    CLOSED = "closed"


class Auction:
    """
    Bid book and settlement decision for one Item.

    Attributes:
        item: The listed item (seller, prices, end time, active flag)
        clock: Wall-clock source used for the expiry check
        ticker: Monotonic source used to timestamp bids
    """

    def __init__(
        self,
        item: Item,
        clock: Clock = time.time,
        ticker: Clock = time.monotonic,
    ) -> None:
        self.item = item
        self.clock = clock
        self.ticker = ticker

        # Sorted ascending on (-amount, timestamp, seq); index 0 is the top bid.
        # seq is unique so tuple comparison never reaches the Bid itself.
        self._ranked: list[tuple[float, float, int, Bid]] = []
        self._log: list[Bid] = []
        self._user_bids: dict[str, float] = {}

    @property
    def item_id(self) -> str:
        return self.item.item_id

    # =========================================================================
    # STATE
    # =========================================================================

    def is_expired(self) -> bool:
        return self.clock() > self.item.end_time

    def is_active(self) -> bool:
        """True iff the flag is set and the end time has not passed."""
        return self.item.active and not self.is_expired()

    @property
    def state(self) -> AuctionState:
        if not self.item.active:
            return AuctionState.CLOSED
        if self.is_expired():
            return AuctionState.EXPIRED
        return AuctionState.OPEN

    def time_remaining(self) -> float:
        """Seconds until the end time, 0 once expired or closed."""
        if not self.item.active:
            return 0.0
        return max(0.0, self.item.end_time - self.clock())

    # =========================================================================
    # BIDDING
    # =========================================================================

    def validate_bid(self, bidder_id: str, amount: float) -> Rejection | None:
        """
        Run the bid checks in order without recording anything.

        Returns:
            The first failing Rejection, or None if the bid would be accepted
        """
        if not self.is_active():
            return Rejection.AUCTION_INACTIVE
        # Only finite amounts reach the book
        if not math.isfinite(amount):
            return Rejection.INVALID_AMOUNT
        if amount <= self.item.starting_price:
            return Rejection.BELOW_STARTING_PRICE
        if self._ranked and amount <= self._ranked[0][3].amount:
            return Rejection.BELOW_CURRENT_HIGHEST
        if bidder_id == self.item.seller_id:
            return Rejection.SELF_BID
        return None

    def place_bid(self, bidder_id: str, amount: float) -> Result[Bid]:
        """
        Validate and record a bid.

        Args:
            bidder_id: Id of the bidding user
            amount: Offered amount

        Returns:
            Result holding the recorded Bid, or the first failing Rejection.
            A rejected bid leaves the auction untouched.
        """
        reason = self.validate_bid(bidder_id, amount)
        if reason is not None:
            logger.debug(
                f"{self.item_id}: rejected {amount} from {bidder_id} ({reason.value})"
            )
            return Result.reject(reason)

        bid = Bid(
            bidder_id=bidder_id,
            amount=amount,
            timestamp=self.ticker(),
            item_id=self.item_id,
        )
        bisect.insort(self._ranked, (-bid.amount, bid.timestamp, len(self._log), bid))
        self._log.append(bid)

        # Only reached after acceptance
        previous = self._user_bids.get(bidder_id)
        self._user_bids[bidder_id] = amount if previous is None else max(previous, amount)

        logger.info(f"{self.item_id}: accepted {amount} from {bidder_id}")
        return Result.accept(bid)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def current_price(self) -> float:
        """Starting price with no bids, else the top-ranked bid's amount."""
        if not self._ranked:
            return self.item.starting_price
        return self._ranked[0][3].amount

    def highest_bid(self) -> Bid:
        """Top-ranked bid, or the empty sentinel (no bidder) if none exist."""
        if not self._ranked:
            return empty_bid(self.item_id)
        return self._ranked[0][3]

    def has_bids(self) -> bool:
        return bool(self._log)

    def reserve_met(self) -> bool:
        return self.current_price() >= self.item.reserve_price

    def bid_log(self) -> list[Bid]:
        """Every accepted bid in arrival order."""
        return list(self._log)

    def ranked_bids(self) -> list[Bid]:
        """Every accepted bid, highest first, earlier bid first on equal amounts."""
        return [entry[3] for entry in self._ranked]

    def user_highest_bids(self) -> dict[str, float]:
        return dict(self._user_bids)

    def top_bidders(self, limit: int) -> list[tuple[str, float]]:
        """
        Bidders ordered by their highest amount, descending.

        Equal amounts keep first-bid order, which cannot actually occur since
        every accepted bid strictly beats the previous highest.
        """
        ordered = sorted(self._user_bids.items(), key=lambda pair: pair[1], reverse=True)
        return ordered[: max(limit, 0)]

    # =========================================================================
    # CLOSE
    # =========================================================================

    def close(self) -> bool:
        """
        Clear the active flag. Idempotent and terminal.

        Returns:
            True if this call closed the auction, False if it was already closed
        """
        if not self.item.active:
            return False
        self.item.active = False
        logger.info(f"{self.item_id}: closed at price {self.current_price()}")
        return True

    def __repr__(self) -> str:
        return (
            f"Auction({self.item_id!r}, price={self.current_price()}, "
            f"bids={len(self._log)}, state={self.state.value})"
        )
