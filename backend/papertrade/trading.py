from __future__ import annotations
import logging
from dataclasses import dataclass

from .errors import InsufficientFunds, InsufficientUnits
from .models import Position, User
from .prices import PriceFeed

log = logging.getLogger("papertrade")

@dataclass
class TradingEngine:
    feed: PriceFeed
    check_funds: bool = False

    def buy(self, user: User, ticker: str, units: int) -> User:
        """
        Add ``units`` of ``ticker`` at the current feed price.
        An existing position gets a weighted average cost:
            (old_units*old_avg + cost) / (old_units + units)
        The balance may go negative unless ``check_funds`` is on.
        """
        price = self.feed.price(ticker)
        cost = price * units
        if self.check_funds and user.balance < cost:
            raise InsufficientFunds()

        pos = user.position(ticker)
        if pos is not None:
            old_units, old_cost = pos.units, pos.avg_cost
            new_units = old_units + units
            if new_units != 0:
                pos.avg_cost = (old_units * old_cost + cost) / new_units
            pos.units = new_units
        else:
            pos = Position(ticker=ticker, units=units, avg_cost=price)
            user.portfolio.append(pos)
        # zero-unit positions are never kept
        if pos.units == 0:
            user.portfolio.remove(pos)

        user.balance -= cost
        log.info("buy %s %d %s @ %.2f (cost %.2f)", user.email, units, ticker, price, cost)
        return user

    def sell(self, user: User, ticker: str, units: int) -> User:
        """Remove ``units`` of ``ticker``; an emptied position is dropped."""
        price = self.feed.price(ticker)
        pos = user.position(ticker)
        if pos is None or pos.units < units:
            raise InsufficientUnits()

        pos.units -= units
        if pos.units == 0:
            user.portfolio.remove(pos)

        revenue = price * units
        user.balance += revenue
        log.info("sell %s %d %s @ %.2f (revenue %.2f)", user.email, units, ticker, price, revenue)
        return user
