from __future__ import annotations

import random
import threading
from typing import Dict, Iterable, Optional

from .errors import UnknownTicker

class PriceFeed:
    """Simulated ticker -> price map driven by a bounded random walk.

    Prices are kept in cents precision. ``step`` moves every ticker by a
    uniform delta in [-max_step, +max_step] and clamps at ``floor``; there is
    no ceiling.
    """

    def __init__(self, tickers: Iterable[str], *, seed_low: float = 100.0, seed_high: float = 600.0,
                 max_step: float = 2.0, floor: float = 10.0, rng: Optional[random.Random] = None):
        self.max_step = max_step
        self.floor = floor
        self.rng = rng or random.Random()
        self.lock = threading.Lock()
        self.prices: Dict[str, float] = {}
        for tk in tickers:
            px = round(self.rng.uniform(seed_low, seed_high), 2)
            # half-open seed range; rounding may land on seed_high
            self.prices[tk] = min(px, round(seed_high - 0.01, 2))

    @classmethod
    def from_config(cls, cfg, rng: Optional[random.Random] = None) -> "PriceFeed":
        f = cfg.feed
        return cls(f.tickers, seed_low=f.seed_low, seed_high=f.seed_high,
                   max_step=f.max_step, floor=f.floor, rng=rng)

    @property
    def tickers(self) -> list[str]:
        return list(self.prices)

    def step(self) -> Dict[str, float]:
        with self.lock:
            for tk, px in self.prices.items():
                change = self.rng.uniform(-self.max_step, self.max_step)
                self.prices[tk] = round(max(px + change, self.floor), 2)
            return dict(self.prices)

    def price(self, ticker: str) -> float:
        with self.lock:
            try:
                return self.prices[ticker]
            except KeyError:
                raise UnknownTicker(ticker) from None

    def snapshot(self) -> Dict[str, float]:
        with self.lock:
            return dict(self.prices)
