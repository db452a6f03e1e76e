"""
Tabular views over marketplace state.

Each builder returns a pandas DataFrame so the same data can be printed by
the console (format_table) or aggregated by the simulation.
"""

import pandas as pd
from tabulate import tabulate

from marketplace.auction import Auction
from marketplace.directory import Settlement, UserProfile
from marketplace.ledger import Bid

AUCTION_COLUMNS = ["item_id", "name", "seller_id", "current_price", "bids", "status", "remaining_s"]
BID_COLUMNS = ["rank", "bidder_id", "amount", "timestamp"]
BIDDER_COLUMNS = ["rank", "bidder_id", "highest_amount"]


def auctions_frame(auctions: list[Auction]) -> pd.DataFrame:
    """One row per auction with its live price and state."""
    rows = [
        {
            "item_id": auction.item_id,
            "name": auction.item.name,
            "seller_id": auction.item.seller_id,
            "current_price": auction.current_price(),
            "bids": len(auction.bid_log()),
            "status": "Active" if auction.is_active() else "Ended",
            "remaining_s": round(auction.time_remaining(), 1),
        }
        for auction in auctions
    ]
    return pd.DataFrame(rows, columns=AUCTION_COLUMNS)


def bid_history_frame(bids: list[Bid]) -> pd.DataFrame:
    """Ranked bids; `bids` is expected highest first."""
    rows = [
        {
            "rank": rank,
            "bidder_id": bid.bidder_id,
            "amount": bid.amount,
            # Monotonic seconds, trimmed like a wall-clock seconds field
            "timestamp": int(bid.timestamp) % 10000,
        }
        for rank, bid in enumerate(bids, start=1)
    ]
    return pd.DataFrame(rows, columns=BID_COLUMNS)


def top_bidders_frame(bidders: list[tuple[str, float]]) -> pd.DataFrame:
    rows = [
        {"rank": rank, "bidder_id": bidder_id, "highest_amount": amount}
        for rank, (bidder_id, amount) in enumerate(bidders, start=1)
    ]
    return pd.DataFrame(rows, columns=BIDDER_COLUMNS)


def settlements_frame(settlements: list[Settlement], auctions: dict[str, Auction]) -> pd.DataFrame:
    """Per-auction settlement summary, joined with listing prices."""
    rows = []
    for settlement in settlements:
        item = auctions[settlement.item_id].item
        rows.append(
            {
                "item_id": settlement.item_id,
                "seller_id": settlement.seller_id,
                "starting_price": item.starting_price,
                "reserve_price": item.reserve_price,
                "num_bids": len(auctions[settlement.item_id].bid_log()),
                "highest_bid": settlement.amount,
                "winner_id": settlement.winner_id,
                "outcome": settlement.outcome.value,
                "sold": settlement.sold,
            }
        )
    return pd.DataFrame(rows)


def profile_lines(profile: UserProfile) -> list[str]:
    return [
        f"Username: {profile.username}",
        f"Email: {profile.email}",
        f"Balance: ${profile.balance:.2f}",
        f"Bids Placed: {profile.bids_placed}",
        f"Items Owned: {profile.items_owned}",
        f"Items Sold: {profile.items_sold}",
        f"Auctions Created: {profile.auctions_created}",
    ]


def format_table(df: pd.DataFrame, empty_message: str = "Nothing to show.") -> str:
    """Render a frame for the terminal."""
    if df.empty:
        return empty_message
    return tabulate(
        df.to_dict("records"),
        headers="keys",
        tablefmt="pretty",
        floatfmt=".2f",
        numalign="right",
    )
