# backend/tests/conftest.py
import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from papertrade.config import Cfg, FeedCfg, TradingCfg
from papertrade.db import Base, make_engine, make_session_factory
from papertrade.main import app, configure
from papertrade.prices import PriceFeed

TICKERS = ["GOOG", "TSLA", "AMZN", "META", "NVDA"]


@pytest.fixture
def cfg() -> Cfg:
    """
    Test settings: in-memory SQLite, cheap bcrypt, and a tick slow enough
    that prices never move while a test is talking to the API.
    """
    return Cfg(
        database_url="sqlite://",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        feed=FeedCfg(tickers=TICKERS, tick_seconds=3600),
        trading=TradingCfg(),
    )


@pytest.fixture
def feed(cfg: Cfg) -> PriceFeed:
    return PriceFeed.from_config(cfg, rng=random.Random(42))


@pytest.fixture
def db_session():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session: Session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(cfg: Cfg, feed: PriceFeed):
    """
    A TestClient bound to a freshly configured app. Server exceptions are
    returned as responses so the 500 mapping can be asserted.
    """
    configure(app, cfg, feed)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def registered(client: TestClient) -> dict:
    creds = {"name": "Ada", "email": "ada@example.com", "password": "hunter2"}
    resp = client.post("/register", json=creds)
    assert resp.status_code == 200
    return creds
