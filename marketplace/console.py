"""
Numbered-menu command interface.

Usage:
    python -m marketplace [--config conf/config.yaml] [--log-level INFO]
                          [--events logs/events.jsonl] [key.sub=value ...]

Reads one answer per line from stdin and writes status lines to stdout. The
console holds the single current Session; the Directory itself has no notion
of a "current" user.
"""

import argparse
import math
import sys
from typing import Callable, TextIO

from marketplace.config import configure_logging, load_config
from marketplace.directory import MarketplaceDirectory, Session, SettlementOutcome
from marketplace.errors import Rejection
from marketplace.event_logger import MarketEventLogger
from marketplace.reports import (
    auctions_frame,
    bid_history_frame,
    format_table,
    profile_lines,
    top_bidders_frame,
)

MENU = [
    "Register User",
    "Login",
    "Logout",
    "Create Auction",
    "Place Bid",
    "View Active Auctions",
    "View Auction Details",
    "View User Profile",
    "View Bid History",
    "End Auction",
    "Add Balance",
    "Search Auctions",
    "View Top Bidders",
]


class EndOfInput(Exception):
    """Raised when stdin runs dry mid-prompt."""


class Console:
    """Interactive front end over one MarketplaceDirectory."""

    def __init__(
        self,
        directory: MarketplaceDirectory,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.directory = directory
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.session: Session | None = None

        self._handlers: dict[int, Callable[[], None]] = {
            1: self.register_user,
            2: self.login,
            3: self.logout,
            4: self.create_auction,
            5: self.place_bid,
            6: self.show_active_auctions,
            7: self.show_auction_details,
            8: self.show_profile,
            9: self.show_bid_history,
            10: self.end_auction,
            11: self.add_balance,
            12: self.search_auctions,
            13: self.show_top_bidders,
        }

    # =========================================================================
    # I/O helpers
    # =========================================================================

    def say(self, text: str = "") -> None:
        self.stdout.write(text + "\n")

    def ask(self, prompt: str) -> str:
        self.stdout.write(prompt)
        line = self.stdin.readline()
        if not line:
            raise EndOfInput()
        return line.strip()

    def ask_number(self, prompt: str) -> float | None:
        raw = self.ask(prompt)
        try:
            value = float(raw)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            self.say(f"Invalid number: {raw!r}")
            return None
        return value

    def show_menu(self) -> None:
        self.say()
        self.say("=== Auction System Menu ===")
        for number, label in enumerate(MENU, start=1):
            self.say(f"{number}. {label}")
        self.say("0. Exit")

    # =========================================================================
    # Menu actions
    # =========================================================================

    def register_user(self) -> None:
        username = self.ask("Enter username: ")
        email = self.ask("Enter email: ")
        result = self.directory.register_user(username, email)
        if result.ok:
            self.say(f"User registered successfully! User ID: {result.value}")
        else:
            self.say(f"Registration failed: {result.message}")

    def login(self) -> None:
        username = self.ask("Enter username: ")
        result = self.directory.login(username)
        if result.ok:
            self.directory.logout(self.session)
            self.session = result.value
            self.say(f"Welcome back, {username}!")
        else:
            self.say(f"Login failed: user {result.message}")

    def logout(self) -> None:
        self.directory.logout(self.session)
        self.session = None
        self.say("Logged out successfully!")

    def create_auction(self) -> None:
        name = self.ask("Enter item name: ")
        description = self.ask("Enter description: ")
        starting_price = self.ask_number("Enter starting price: $")
        if starting_price is None:
            return
        reserve_price = self.ask_number("Enter reserve price: $")
        if reserve_price is None:
            return
        duration = self.ask_number("Enter duration (minutes): ")
        if duration is None:
            return
        result = self.directory.create_auction(
            self.session, name, description, starting_price, reserve_price, duration
        )
        if result.ok:
            self.say(f"Auction created successfully! Item ID: {result.value}")
        else:
            self.say(f"Cannot create auction: {result.message}")

    def place_bid(self) -> None:
        item_id = self.ask("Enter item ID: ")
        amount = self.ask_number("Enter bid amount: $")
        if amount is None:
            return
        result = self.directory.place_bid(self.session, item_id, amount)
        if result.ok:
            self.say(f"Bid placed successfully! ${amount:.2f} on {item_id}")
        elif result.reason.is_bid_too_low:
            price = self.directory.get_auction(item_id).value.current_price()
            self.say(f"Bid rejected: {result.message} (current price ${price:.2f})")
        else:
            self.say(f"Bid rejected: {result.message}")

    def show_active_auctions(self) -> None:
        self.say("\n=== Active Auctions ===")
        frame = auctions_frame(self.directory.active_auctions())
        self.say(format_table(frame, "No active auctions."))

    def show_auction_details(self) -> None:
        item_id = self.ask("Enter item ID: ")
        result = self.directory.get_auction(item_id)
        if not result.ok:
            self.say("Auction not found!")
            return
        auction = result.value
        item = auction.item
        highest = auction.highest_bid()
        self.say(f"\n=== Auction Details: {item.item_id} ===")
        self.say(f"Name: {item.name}")
        self.say(f"Description: {item.description}")
        self.say(f"Seller: {item.seller_id}")
        self.say(f"Starting Price: ${item.starting_price:.2f}")
        self.say(f"Current Price: ${auction.current_price():.2f}")
        self.say(f"Reserve Met: {'Yes' if auction.reserve_met() else 'No'}")
        if auction.has_bids():
            self.say(f"Highest Bidder: {highest.bidder_id}")
        self.say(f"Bids: {len(auction.bid_log())}")
        self.say(f"Status: {'Active' if auction.is_active() else 'Ended'}")
        if auction.is_active():
            self.say(f"Time Remaining: {int(auction.time_remaining() // 60)} minutes")

    def show_profile(self) -> None:
        result = self.directory.profile(self.session)
        if not result.ok:
            self.say("Please login first!")
            return
        self.say("\n=== User Profile ===")
        for line in profile_lines(result.value):
            self.say(line)

    def show_bid_history(self) -> None:
        item_id = self.ask("Enter item ID: ")
        result = self.directory.bid_history(item_id)
        if not result.ok:
            self.say("Auction not found!")
            return
        self.say(f"\n=== Bid History for {item_id} ===")
        self.say(format_table(bid_history_frame(result.value), "No bids placed yet."))

    def end_auction(self) -> None:
        item_id = self.ask("Enter item ID: ")
        result = self.directory.settle(item_id)
        if not result.ok:
            self.say("Auction not found!" if result.reason is Rejection.NOT_FOUND else "Auction already ended!")
            return

        settlement = result.value
        highest = settlement.highest_bid
        self.say("\n=== Auction Ended ===")
        if settlement.sold:
            self.say(f"Item sold to {highest.bidder_id} for ${highest.amount:.2f}")
        elif highest.is_empty:
            self.say("No bids were placed. Item remains unsold.")
        else:
            if settlement.outcome is SettlementOutcome.RESERVE_NOT_MET:
                self.say("Reserve price not met. Item remains unsold.")
            else:
                self.say("Winning bidder cannot cover the bid. Item remains unsold.")
            self.say(f"Highest bid: ${highest.amount:.2f} by {highest.bidder_id}")

    def add_balance(self) -> None:
        amount = self.ask_number("Enter amount to add: $")
        if amount is None:
            return
        result = self.directory.add_balance(self.session, amount)
        if result.ok:
            self.say(f"Balance added successfully! New balance: ${result.value:.2f}")
        else:
            self.say(f"Cannot add balance: {result.message}")

    def search_auctions(self) -> None:
        keyword = self.ask("Enter search keyword: ")
        self.say(f"\n=== Search Results for: {keyword} ===")
        frame = auctions_frame(self.directory.search(keyword))
        self.say(format_table(frame, f"No auctions found matching: {keyword}"))

    def show_top_bidders(self) -> None:
        item_id = self.ask("Enter item ID: ")
        result = self.directory.top_bidders(item_id)
        if not result.ok:
            self.say("Auction not found!")
            return
        self.say(f"\n=== Top Bidders for {item_id} ===")
        self.say(format_table(top_bidders_frame(result.value), "No bids placed yet."))

    # =========================================================================
    # Loop
    # =========================================================================

    def run(self) -> int:
        """
        Serve menu choices until 0 or end of input.

        Returns:
            Process exit code (always 0)
        """
        self.say("Welcome to Advanced Auction System!")
        while True:
            self.show_menu()
            try:
                raw = self.ask("Choice: ")
            except EndOfInput:
                break

            try:
                choice = int(raw)
            except ValueError:
                choice = -1

            if choice == 0:
                break
            handler = self._handlers.get(choice)
            if handler is None:
                self.say("Invalid choice! Please try again.")
                continue
            try:
                handler()
            except EndOfInput:
                break

        self.say("Thank you for using Advanced Auction System!")
        return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="In-memory auction marketplace console")
    parser.add_argument("--config", type=str, default=None, help="YAML config merged over defaults")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging.level")
    parser.add_argument("--events", type=str, default=None, help="Write a JSONL event log here")
    parser.add_argument("overrides", nargs="*", help="Dotlist overrides, e.g. marketplace.initial_balance=500")
    args = parser.parse_args(argv)

    overrides = list(args.overrides)
    if args.log_level:
        overrides.append(f"logging.level={args.log_level}")
    if args.events:
        overrides += ["events.enabled=true", f"events.path={args.events}"]
    config = load_config(args.config, overrides)
    configure_logging(config)

    event_logger = MarketEventLogger(config.events.path) if config.events.enabled else None
    try:
        directory = MarketplaceDirectory(config=config, event_logger=event_logger)
        return Console(directory).run()
    finally:
        if event_logger is not None:
            event_logger.close()
