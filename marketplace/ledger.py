"""
Ledger entities for the auction marketplace.

These are passive records. They hold balances and listing data but never
decide anything about bidding; the Auction engine and the Directory do that.
"""

import math
from dataclasses import dataclass, field


@dataclass
class User:
    """
    A registered marketplace participant.

    Attributes:
        user_id: Directory-assigned identifier
        username: Unique (case-sensitive) login name
        email: Contact address, informational only
        balance: Spendable funds. Not reduced by bidding, only by settlement.
        bid_history: Item ids of every accepted bid, in order (repeats allowed)
        owned_items: Item ids won at settlement
        sold_items: Item ids this user sold at settlement
    """

    user_id: str
    username: str
    email: str
    balance: float = 1000.0
    bid_history: list[str] = field(default_factory=list)
    owned_items: list[str] = field(default_factory=list)
    sold_items: list[str] = field(default_factory=list)

    def add_balance(self, amount: float) -> None:
        self.balance += amount

    def deduct_balance(self, amount: float) -> bool:
        """
        Remove funds if the balance covers them.

        Returns:
            True if deducted, False (and balance untouched) otherwise
        """
        if self.balance < amount:
            return False
        self.balance -= amount
        return True

    def add_bid(self, item_id: str) -> None:
        self.bid_history.append(item_id)

    def add_owned_item(self, item_id: str) -> None:
        self.owned_items.append(item_id)

    def add_sold_item(self, item_id: str) -> None:
        self.sold_items.append(item_id)


@dataclass
class Item:
    """
    An item listed for auction.

    Prices and the end time are fixed at creation. Only `active` changes,
    and only from True to False.
    """

    item_id: str
    name: str
    description: str
    starting_price: float
    reserve_price: float
    seller_id: str
    start_time: float
    duration_minutes: float
    active: bool = True
    end_time: float = field(init=False)

    def __post_init__(self) -> None:
        if not math.isfinite(self.duration_minutes) or self.duration_minutes < 0:
            raise ValueError(
                f"duration_minutes must be a finite non-negative number, got {self.duration_minutes}"
            )
        self.end_time = self.start_time + self.duration_minutes * 60.0

    def matches(self, keyword: str) -> bool:
        """Case-sensitive substring match against name or description."""
        return keyword in self.name or keyword in self.description


@dataclass(frozen=True)
class Bid:
    """
    One accepted (or proposed) bid.

    `timestamp` comes from a monotonic clock so it orders bids within the
    process, it is not a wall-clock time.
    """

    bidder_id: str
    amount: float
    timestamp: float
    item_id: str

    @property
    def is_empty(self) -> bool:
        return not self.bidder_id


def empty_bid(item_id: str = "") -> Bid:
    """Sentinel returned when an auction has no bids: no bidder, amount 0."""
    return Bid(bidder_id="", amount=0.0, timestamp=0.0, item_id=item_id)
