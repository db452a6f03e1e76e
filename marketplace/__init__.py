"""
marketplace - In-memory auction marketplace

This package contains a single-process auction house: users register, list
timed auctions, place competing bids and settle auctions against a reserve
price. Nothing is persisted; all state lives for the process lifetime.

Modules:
    ledger: Passive records (User, Item, Bid)
    auction: The bidding engine for one auction (ordering, reserve, close)
    directory: Registry of users/auctions and settlement bookkeeping
    errors: Rejection reasons and the Result type returned by operations
    config: OmegaConf defaults and logging setup
    event_logger: JSONL event log of bids and settlements
    reports: pandas/tabulate views for the console
    simulation: Seeded random marketplace runs
    console: Numbered-menu command interface
"""

__version__ = "1.0.0"
