# tests/property/test_auction_properties.py
"""
Property-based tests for Auction and settlement invariants using Hypothesis.

These tests verify that key invariants hold across a wide range of bid
streams, catching edge cases that example-based tests might miss.
"""

import itertools
import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from marketplace.auction import Auction
from marketplace.directory import MarketplaceDirectory, SettlementOutcome
from marketplace.ledger import Item

SELLER = "USER0"
BIDDERS = [SELLER, "USER1", "USER2", "USER3", "USER4"]

# =============================================================================
# Strategies for generating test data
# =============================================================================


@st.composite
def auction_params(draw):
    """Generate a starting price and a reserve at or above it."""
    starting_price = draw(st.integers(min_value=0, max_value=100))
    reserve_price = draw(st.integers(min_value=starting_price, max_value=300))
    return float(starting_price), float(reserve_price)


# Mostly whole amounts, plus arbitrary floats including nan and +-inf
bid_amounts = st.one_of(
    st.integers(min_value=0, max_value=400).map(float),
    st.floats(allow_nan=True, allow_infinity=True),
)

bid_attempts = st.lists(
    st.tuples(st.sampled_from(BIDDERS), bid_amounts),
    max_size=40,
)


def make_auction(starting_price: float, reserve_price: float) -> Auction:
    ticks = itertools.count(1)
    item = Item(
        item_id="ITEM1",
        name="Lot",
        description="Property lot",
        starting_price=starting_price,
        reserve_price=reserve_price,
        seller_id=SELLER,
        start_time=0.0,
        duration_minutes=60,
    )
    return Auction(item, clock=lambda: 0.0, ticker=lambda: float(next(ticks)))


# =============================================================================
# Property Tests: Auction Invariants
# =============================================================================


class TestAuctionInvariants:
    """Property tests for the bid book."""

    @given(auction_params(), bid_attempts)
    @settings(max_examples=100)
    def test_current_price_is_max_accepted(self, params, attempts):
        auction = make_auction(*params)
        accepted = []
        for bidder, amount in attempts:
            if auction.place_bid(bidder, amount).ok:
                accepted.append(amount)

        expected = max(accepted) if accepted else params[0]
        assert auction.current_price() == expected
        assert [b.amount for b in auction.bid_log()] == accepted

    @given(auction_params(), bid_attempts)
    @settings(max_examples=100)
    def test_low_and_self_bids_never_logged(self, params, attempts):
        auction = make_auction(*params)
        for bidder, amount in attempts:
            price_before = auction.current_price()
            log_before = auction.bid_log()
            result = auction.place_bid(bidder, amount)
            if not math.isfinite(amount) or amount <= price_before or bidder == SELLER:
                assert not result.ok
                assert auction.bid_log() == log_before

        assert all(b.bidder_id != SELLER for b in auction.bid_log())
        assert all(math.isfinite(b.amount) and b.amount > params[0] for b in auction.bid_log())

    @given(auction_params(), bid_attempts)
    @settings(max_examples=100)
    def test_highest_bid_is_top_of_ranking(self, params, attempts):
        auction = make_auction(*params)
        for bidder, amount in attempts:
            auction.place_bid(bidder, amount)

        log = auction.bid_log()
        if not log:
            assert auction.highest_bid().is_empty
            return
        ranked = auction.ranked_bids()
        top = max(log, key=lambda b: (b.amount, -b.timestamp))
        assert auction.highest_bid() == top == ranked[0]
        assert sorted(log, key=lambda b: (-b.amount, b.timestamp)) == ranked

    @given(auction_params(), bid_attempts)
    @settings(max_examples=100)
    def test_user_highest_bids_match_log(self, params, attempts):
        auction = make_auction(*params)
        for bidder, amount in attempts:
            auction.place_bid(bidder, amount)

        expected: dict[str, float] = {}
        for bid in auction.bid_log():
            expected[bid.bidder_id] = max(expected.get(bid.bidder_id, bid.amount), bid.amount)
        assert auction.user_highest_bids() == expected

    @given(auction_params(), bid_attempts, st.integers(min_value=0, max_value=6))
    @settings(max_examples=100)
    def test_top_bidders_bounded_and_strictly_descending(self, params, attempts, limit):
        auction = make_auction(*params)
        for bidder, amount in attempts:
            auction.place_bid(bidder, amount)

        top = auction.top_bidders(limit)
        assert len(top) <= limit
        amounts = [amount for _, amount in top]
        assert all(a > b for a, b in zip(amounts, amounts[1:]))

    @given(auction_params(), bid_attempts)
    @settings(max_examples=50)
    def test_close_twice_equals_close_once(self, params, attempts):
        auction = make_auction(*params)
        for bidder, amount in attempts:
            auction.place_bid(bidder, amount)

        assert auction.close() is True
        snapshot = (auction.item.active, auction.bid_log(), auction.user_highest_bids())
        assert auction.close() is False
        assert (auction.item.active, auction.bid_log(), auction.user_highest_bids()) == snapshot


# =============================================================================
# Property Tests: Settlement Invariants
# =============================================================================


class TestSettlementInvariants:
    """Money is only ever moved from winner to seller, and only when sold."""

    @given(auction_params(), bid_attempts)
    @settings(max_examples=100)
    def test_settlement_conserves_money(self, params, attempts):
        directory = MarketplaceDirectory(clock=lambda: 0.0)
        sessions = {}
        for user_id in BIDDERS:
            directory.register_user(user_id.lower(), f"{user_id}@x.com", initial_balance=250.0)
            sessions[user_id] = directory.login(user_id.lower()).value

        seller = sessions[SELLER]
        item_id = directory.create_auction(seller, "Lot", "Property lot", *params, 60).value
        for bidder, amount in attempts:
            directory.place_bid(sessions[bidder], item_id, amount)

        before = {s.user_id: directory.get_user(s.user_id).balance for s in sessions.values()}
        settlement = directory.settle(item_id).value
        after = {s.user_id: directory.get_user(s.user_id).balance for s in sessions.values()}

        assert sum(after.values()) == pytest.approx(sum(before.values()))
        if settlement.outcome is SettlementOutcome.SOLD:
            winner = settlement.winner_id
            assert after[winner] == before[winner] - settlement.amount
            assert after[seller.user_id] == before[seller.user_id] + settlement.amount
            assert directory.get_user(winner).owned_items == [item_id]
            assert directory.get_user(seller.user_id).sold_items == [item_id]
        else:
            assert after == before
            assert all(not directory.get_user(s.user_id).owned_items for s in sessions.values())
            assert all(not directory.get_user(s.user_id).sold_items for s in sessions.values())
