"""
Rejection reasons and the Result type.

Every marketplace operation reports validation failures by returning a
Result carrying a Rejection, never by raising. A rejected operation has not
mutated anything.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Rejection(str, Enum):
    """Human-readable rejection reasons, grouped by the checks that emit them."""

    # Directory-level
    SESSION_REQUIRED = "please login first"
    NOT_FOUND = "not found"
    DUPLICATE_USERNAME = "username already exists"
    INSUFFICIENT_FUNDS = "insufficient funds"
    INVALID_AMOUNT = "amount must be a positive number"
    INVALID_DURATION = "duration must be a non-negative number of minutes"
    ALREADY_ENDED = "already ended"

    # Auction engine
    AUCTION_INACTIVE = "auction not active"
    BELOW_STARTING_PRICE = "below starting price"
    BELOW_CURRENT_HIGHEST = "below current highest"
    SELF_BID = "self-bid forbidden"

    @property
    def is_bid_too_low(self) -> bool:
        return self in (Rejection.BELOW_STARTING_PRICE, Rejection.BELOW_CURRENT_HIGHEST)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a marketplace operation.

    Exactly one of `value` (on success) or `reason` (on failure) is meaningful.
    A Result is truthy when the operation succeeded.
    """

    value: T | None = None
    reason: Rejection | None = None

    @classmethod
    def accept(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def reject(cls, reason: Rejection) -> "Result[T]":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        return "ok" if self.reason is None else self.reason.value

    def __bool__(self) -> bool:
        return self.ok
