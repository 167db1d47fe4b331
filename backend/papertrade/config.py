from __future__ import annotations
import os
from pathlib import Path
from pydantic import BaseModel, Field
import yaml

DEFAULT_TICKERS = ["GOOG", "TSLA", "AMZN", "META", "NVDA"]

class FeedCfg(BaseModel):
    tickers: list[str] = Field(default_factory=lambda: list(DEFAULT_TICKERS)); seed_low: float = 100.0; seed_high: float = 600.0
    max_step: float = 2.0; floor: float = 10.0; tick_seconds: float = 1.0
class TradingCfg(BaseModel): check_funds: bool = False; serialize_per_user: bool = False
class Cfg(BaseModel):
    database_url: str = "sqlite:///./papertrade.db"; port: int = 5000; jwt_secret: str = "secret_key"
    starting_balance: float = 10000.0; bcrypt_rounds: int = 10
    feed: FeedCfg = Field(default_factory=FeedCfg); trading: TradingCfg = Field(default_factory=TradingCfg)

CFG_PATH = Path(os.getenv("PAPERTRADE_CONFIG", "config.yaml"))

def _truthy(v: str) -> bool:
    return v.strip().lower() in ("1", "true", "yes", "on")

def load_config(path: Path | None = None) -> "Cfg":
    p = path or CFG_PATH
    data = (yaml.safe_load(p.read_text()) or {}) if p.exists() else {}
    cfg = Cfg(**data)
    # deployment overrides
    if os.getenv("DATABASE_URL"): cfg.database_url = os.environ["DATABASE_URL"]
    if os.getenv("PORT"): cfg.port = int(os.environ["PORT"])
    if os.getenv("JWT_SECRET"): cfg.jwt_secret = os.environ["JWT_SECRET"]
    if os.getenv("TICK_SECONDS"): cfg.feed.tick_seconds = float(os.environ["TICK_SECONDS"])
    if os.getenv("CHECK_FUNDS"): cfg.trading.check_funds = _truthy(os.environ["CHECK_FUNDS"])
    return cfg
