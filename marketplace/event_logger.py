"""
JSONL audit trail for the marketplace.

Each record is one JSON object per line tagged with an ``event_type``:
``auction_created``, ``bid`` (every attempt that reached an auction, with
the rejection text when refused) and ``settlement``.
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import ClassVar, TextIO


@dataclass
class AuctionCreatedEvent:
    event_type: ClassVar[str] = "auction_created"

    item_id: str
    seller_id: str
    name: str
    starting_price: float
    reserve_price: float
    end_time: float


@dataclass
class BidEvent:
    event_type: ClassVar[str] = "bid"

    item_id: str
    bidder_id: str
    amount: float
    accepted: bool
    reason: str  # "" when accepted


@dataclass
class SettlementEvent:
    event_type: ClassVar[str] = "settlement"

    item_id: str
    outcome: str
    seller_id: str
    winner_id: str  # "" when unsold
    amount: float  # highest bid, 0 when no bids


MarketEvent = AuctionCreatedEvent | BidEvent | SettlementEvent


class MarketEventLogger:
    """
    Appends marketplace events to a JSONL file, truncating it on open.

    Once closed, further events are dropped silently so a directory can
    outlive its log.
    """

    def __init__(self, output_path: str | Path):
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file: TextIO | None = self.output_path.open("w")

    def log_auction_created(self, **fields) -> None:
        self.write(AuctionCreatedEvent(**fields))

    def log_bid(self, **fields) -> None:
        self.write(BidEvent(**fields))

    def log_settlement(self, **fields) -> None:
        self.write(SettlementEvent(**fields))

    def write(self, event: MarketEvent) -> None:
        if self._file is None:
            return
        record = {"event_type": event.event_type, **asdict(event)}
        self._file.write(json.dumps(record) + "\n")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "MarketEventLogger":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def load_events(log_path: str | Path) -> list[dict[str, object]]:
    """Read a JSONL event log back, skipping blank lines."""
    lines = Path(log_path).read_text().splitlines()
    return [json.loads(line) for line in lines if line.strip()]
