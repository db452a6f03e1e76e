"""
marketplace/directory.py - Registry of users and auctions.

The Directory is the only component that touches more than one entity. It
runs the directory-level checks (session, existence, balance) before handing
a bid to the Auction engine, and on settlement it moves funds and ownership
between the winner and the seller.

Sessions are explicit: login() hands back a Session which every
session-bound call takes as its first argument. Any number of sessions may
be live at once; logout() ends one.
"""

import itertools
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum

from omegaconf import DictConfig

from marketplace.auction import Auction, Clock
from marketplace.config import ensure_config
from marketplace.errors import Rejection, Result
from marketplace.event_logger import MarketEventLogger
from marketplace.ledger import Bid, Item, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """A logged-in user context."""

    session_id: int
    user_id: str
    username: str


class SettlementOutcome(str, Enum):
    SOLD = "sold"
    NO_BIDS = "unsold, no bids"
    RESERVE_NOT_MET = "unsold, reserve not met"
    WINNER_CANNOT_PAY = "unsold, winner cannot pay"


@dataclass(frozen=True)
class Settlement:
    """
    Result of closing an auction.

    `highest_bid` is reported for every outcome (the empty sentinel when
    nobody bid); funds only moved when `outcome` is SOLD.
    """

    item_id: str
    outcome: SettlementOutcome
    seller_id: str
    highest_bid: Bid

    @property
    def sold(self) -> bool:
        return self.outcome is SettlementOutcome.SOLD

    @property
    def winner_id(self) -> str:
        return self.highest_bid.bidder_id if self.sold else ""

    @property
    def amount(self) -> float:
        return self.highest_bid.amount


@dataclass(frozen=True)
class UserProfile:
    username: str
    email: str
    balance: float
    bids_placed: int
    items_owned: int
    items_sold: int
    auctions_created: int


class MarketplaceDirectory:
    """
    Owns all Users and Auctions for the lifetime of the process.

    Attributes:
        config: Effective configuration (see marketplace.config)
        clock: Wall-clock source handed to every Auction for expiry checks
        ticker: Monotonic source handed to every Auction for bid timestamps
        event_logger: Optional JSONL sink for creations, bids and settlements
    """

    def __init__(
        self,
        config: DictConfig | None = None,
        clock: Clock = time.time,
        ticker: Clock = time.monotonic,
        event_logger: MarketEventLogger | None = None,
    ) -> None:
        self.config = ensure_config(config)
        self.clock = clock
        self.ticker = ticker
        self.event_logger = event_logger

        self._users: dict[str, User] = {}
        self._auctions: dict[str, Auction] = {}
        self._user_auctions: dict[str, list[str]] = {}
        self._sessions: dict[int, str] = {}

        self._user_ids = itertools.count(1)
        self._item_ids = itertools.count(1)
        self._session_ids = itertools.count(1)

    # =========================================================================
    # USERS AND SESSIONS
    # =========================================================================

    def register_user(
        self,
        username: str,
        email: str,
        initial_balance: float | None = None,
    ) -> Result[str]:
        """
        Create a user unless the username is already taken.

        Args:
            username: Login name, compared case-sensitively
            email: Contact address
            initial_balance: Starting funds (defaults to marketplace.initial_balance)

        Returns:
            Result holding the new user id, or DUPLICATE_USERNAME
        """
        if any(user.username == username for user in self._users.values()):
            logger.debug(f"Registration refused, username taken: {username}")
            return Result.reject(Rejection.DUPLICATE_USERNAME)

        if initial_balance is None:
            initial_balance = float(self.config.marketplace.initial_balance)

        user_id = f"{self.config.marketplace.user_id_prefix}{next(self._user_ids)}"
        self._users[user_id] = User(
            user_id=user_id,
            username=username,
            email=email,
            balance=initial_balance,
        )
        logger.info(f"Registered {username} as {user_id}")
        return Result.accept(user_id)

    def login(self, username: str) -> Result[Session]:
        """Open a session for the first user with this username."""
        for user in self._users.values():
            if user.username == username:
                session = Session(
                    session_id=next(self._session_ids),
                    user_id=user.user_id,
                    username=user.username,
                )
                self._sessions[session.session_id] = user.user_id
                logger.info(f"{username} logged in (session {session.session_id})")
                return Result.accept(session)
        return Result.reject(Rejection.NOT_FOUND)

    def logout(self, session: Session | None) -> None:
        if session is not None:
            self._sessions.pop(session.session_id, None)

    def is_logged_in(self, session: Session | None) -> bool:
        return self._session_user(session) is not None

    def _session_user(self, session: Session | None) -> User | None:
        if session is None or session.session_id not in self._sessions:
            return None
        return self._users.get(self._sessions[session.session_id])

    def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def add_balance(self, session: Session | None, amount: float) -> Result[float]:
        """
        Top up the session user's balance.

        Returns:
            Result holding the new balance
        """
        user = self._session_user(session)
        if user is None:
            return Result.reject(Rejection.SESSION_REQUIRED)
        if not math.isfinite(amount) or amount <= 0:
            return Result.reject(Rejection.INVALID_AMOUNT)
        user.add_balance(amount)
        return Result.accept(user.balance)

    def profile(self, session: Session | None) -> Result[UserProfile]:
        user = self._session_user(session)
        if user is None:
            return Result.reject(Rejection.SESSION_REQUIRED)
        return Result.accept(
            UserProfile(
                username=user.username,
                email=user.email,
                balance=user.balance,
                bids_placed=len(user.bid_history),
                items_owned=len(user.owned_items),
                items_sold=len(user.sold_items),
                auctions_created=len(self.user_auctions(user.user_id)),
            )
        )

    # =========================================================================
    # AUCTIONS
    # =========================================================================

    def create_auction(
        self,
        session: Session | None,
        name: str,
        description: str,
        starting_price: float,
        reserve_price: float,
        duration_minutes: float,
    ) -> Result[str]:
        """
        List a new item with the session user as seller.

        Returns:
            Result holding the new item id, or SESSION_REQUIRED,
            INVALID_AMOUNT (non-finite prices) or INVALID_DURATION
            (negative or non-finite duration)
        """
        seller = self._session_user(session)
        if seller is None:
            return Result.reject(Rejection.SESSION_REQUIRED)
        if not (math.isfinite(starting_price) and math.isfinite(reserve_price)):
            return Result.reject(Rejection.INVALID_AMOUNT)
        if not math.isfinite(duration_minutes) or duration_minutes < 0:
            return Result.reject(Rejection.INVALID_DURATION)

        item_id = f"{self.config.marketplace.item_id_prefix}{next(self._item_ids)}"
        item = Item(
            item_id=item_id,
            name=name,
            description=description,
            starting_price=starting_price,
            reserve_price=reserve_price,
            seller_id=seller.user_id,
            start_time=self.clock(),
            duration_minutes=duration_minutes,
        )
        self._auctions[item_id] = Auction(item, clock=self.clock, ticker=self.ticker)
        self._user_auctions.setdefault(seller.user_id, []).append(item_id)

        logger.info(f"{seller.user_id} listed {item_id} ({name}) at {starting_price}")
        if self.event_logger is not None:
            self.event_logger.log_auction_created(
                item_id=item_id,
                seller_id=seller.user_id,
                name=name,
                starting_price=starting_price,
                reserve_price=reserve_price,
                end_time=item.end_time,
            )
        return Result.accept(item_id)

    def get_auction(self, item_id: str) -> Result[Auction]:
        auction = self._auctions.get(item_id)
        if auction is None:
            return Result.reject(Rejection.NOT_FOUND)
        return Result.accept(auction)

    def all_auctions(self) -> list[Auction]:
        return list(self._auctions.values())

    def active_auctions(self) -> list[Auction]:
        return [auction for auction in self._auctions.values() if auction.is_active()]

    def user_auctions(self, user_id: str) -> list[str]:
        return list(self._user_auctions.get(user_id, []))

    def search(self, keyword: str) -> list[Auction]:
        """Auctions whose name or description contains keyword, any state."""
        return [
            auction for auction in self._auctions.values() if auction.item.matches(keyword)
        ]

    # =========================================================================
    # BIDDING
    # =========================================================================

    def place_bid(self, session: Session | None, item_id: str, amount: float) -> Result[Bid]:
        """
        Place a bid for the session user.

        Directory checks run first (session, item, balance covers the amount),
        then the engine's own checks. Balance is only compared, never held, so
        several affordable bids may jointly exceed it.

        Returns:
            Result holding the accepted Bid, or the first failing Rejection
        """
        user = self._session_user(session)
        if user is None:
            return Result.reject(Rejection.SESSION_REQUIRED)

        auction = self._auctions.get(item_id)
        if auction is None:
            return Result.reject(Rejection.NOT_FOUND)

        if not math.isfinite(amount):
            result: Result[Bid] = Result.reject(Rejection.INVALID_AMOUNT)
        elif user.balance < amount:
            result = Result.reject(Rejection.INSUFFICIENT_FUNDS)
        else:
            result = auction.place_bid(user.user_id, amount)
            if result.ok:
                user.add_bid(item_id)

        if self.event_logger is not None:
            self.event_logger.log_bid(
                item_id=item_id,
                bidder_id=user.user_id,
                amount=amount,
                accepted=result.ok,
                reason="" if result.ok else result.message,
            )
        return result

    def bid_history(self, item_id: str) -> Result[list[Bid]]:
        """Accepted bids ranked highest first."""
        auction = self._auctions.get(item_id)
        if auction is None:
            return Result.reject(Rejection.NOT_FOUND)
        return Result.accept(auction.ranked_bids())

    def top_bidders(
        self, item_id: str, limit: int | None = None
    ) -> Result[list[tuple[str, float]]]:
        """
        (user id, highest amount) pairs, descending, at most `limit` long.

        `limit` defaults to marketplace.top_bidders_limit.
        """
        auction = self._auctions.get(item_id)
        if auction is None:
            return Result.reject(Rejection.NOT_FOUND)
        if limit is None:
            limit = int(self.config.marketplace.top_bidders_limit)
        return Result.accept(auction.top_bidders(limit))

    # =========================================================================
    # SETTLEMENT
    # =========================================================================

    def settle(self, item_id: str) -> Result[Settlement]:
        """
        Close an active auction and transfer funds/ownership if it sold.

        Only an auction that is still active can be settled; a closed or
        expired one is refused with ALREADY_ENDED. The winner's balance is
        checked again here because it may have changed since bidding; if it
        no longer covers the winning amount the item stays unsold and no
        funds move.

        Returns:
            Result holding the Settlement, or NOT_FOUND / ALREADY_ENDED
        """
        auction = self._auctions.get(item_id)
        if auction is None:
            return Result.reject(Rejection.NOT_FOUND)
        if not auction.is_active():
            return Result.reject(Rejection.ALREADY_ENDED)

        auction.close()
        highest = auction.highest_bid()
        seller_id = auction.item.seller_id

        if not auction.has_bids():
            outcome = SettlementOutcome.NO_BIDS
        elif not auction.reserve_met():
            outcome = SettlementOutcome.RESERVE_NOT_MET
        else:
            winner = self._users[highest.bidder_id]
            if winner.deduct_balance(highest.amount):
                winner.add_owned_item(item_id)
                seller = self._users[seller_id]
                seller.add_balance(highest.amount)
                seller.add_sold_item(item_id)
                outcome = SettlementOutcome.SOLD
            else:
                logger.warning(
                    f"{item_id}: winner {winner.user_id} cannot cover {highest.amount} "
                    f"(balance {winner.balance})"
                )
                outcome = SettlementOutcome.WINNER_CANNOT_PAY

        settlement = Settlement(
            item_id=item_id,
            outcome=outcome,
            seller_id=seller_id,
            highest_bid=highest,
        )
        logger.info(f"{item_id}: {outcome.value} (highest {highest.amount})")
        if self.event_logger is not None:
            self.event_logger.log_settlement(
                item_id=item_id,
                outcome=outcome.value,
                seller_id=seller_id,
                winner_id=settlement.winner_id,
                amount=highest.amount,
            )
        return Result.accept(settlement)
