from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .auth import create_access_token, get_password_hash, verify_password
from .broadcast import Broadcaster, run_ticker
from .config import Cfg, load_config
from .db import Base, make_engine, make_session_factory
from .errors import DuplicateUser, InvalidCredentials, TradingError, UnhandledStorageError
from .prices import PriceFeed
from .schemas import (
    LoginIn, LoginOut, MessageOut, RegisterIn, TradeIn, UserOut, profile_out, user_out,
)
from .store import AccountStore, UserLocks
from .trading import TradingEngine

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
log = logging.getLogger("papertrade")
if not log.handlers:
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    log.addHandler(h)
log.setLevel(logging.INFO)

# ---------------------------------------------------------------------------
# App & state
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    st = app.state
    Base.metadata.create_all(bind=st.engine)
    log.info("Database ready (%s)", st.engine.url.render_as_string(hide_password=True))
    log.info("Price feed: %s, tick every %.2fs", ", ".join(st.feed.tickers), st.cfg.feed.tick_seconds)
    task = asyncio.create_task(run_ticker(st.feed, st.hub, st.cfg.feed.tick_seconds))
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

app = FastAPI(title="Paper Trade", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_methods=["*"], allow_headers=["*"],
)

def configure(app: FastAPI, cfg: Cfg, feed: Optional[PriceFeed] = None) -> FastAPI:
    """(Re)build everything the routes and the ticker share."""
    st = app.state
    st.cfg = cfg
    st.engine = make_engine(cfg.database_url)
    st.session_factory = make_session_factory(st.engine)
    st.feed = feed or PriceFeed.from_config(cfg)
    st.hub = Broadcaster()
    st.trader = TradingEngine(st.feed, check_funds=cfg.trading.check_funds)
    st.user_locks = UserLocks(cfg.trading.serialize_per_user)
    return app

CFG = load_config()
configure(app, CFG)

def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def get_store(request: Request, db: Session = Depends(get_db)) -> AccountStore:
    return AccountStore(db, request.app.state.cfg.starting_balance)

# ---------------------------------------------------------------------------
# Errors -> {"error": "..."}
# ---------------------------------------------------------------------------
@app.exception_handler(TradingError)
async def _trading_error(request: Request, exc: TradingError):
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse({"error": "; ".join(parts) or "Invalid request"}, status_code=400)

@app.exception_handler(UnhandledStorageError)
async def _storage_error(request: Request, exc: UnhandledStorageError):
    log.error("%s %s storage error: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    log.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse({"error": str(exc)}, status_code=500)

# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

# ---- Accounts ----

@app.post("/register", response_model=MessageOut)
def register(body: RegisterIn, request: Request, store: AccountStore = Depends(get_store)):
    if store.find_by_email(body.email) is not None:
        # skip the bcrypt cost for an obvious duplicate
        raise DuplicateUser()
    hashed = get_password_hash(body.password, request.app.state.cfg.bcrypt_rounds)
    store.create_user(body.name, body.email, hashed)
    log.info("registered %s", body.email)
    return MessageOut(message="Registration successful")

@app.post("/login", response_model=LoginOut)
def login(body: LoginIn, request: Request, store: AccountStore = Depends(get_store)):
    user = store.get_by_email(body.email)
    if not verify_password(body.password, user.password):
        raise InvalidCredentials()
    token = create_access_token(user.id, request.app.state.cfg.jwt_secret)
    log.info("login %s", user.email)
    return LoginOut(token=token, user=profile_out(user))

@app.get("/user/{email}", response_model=UserOut)
def get_user(email: str, store: AccountStore = Depends(get_store)):
    return user_out(store.get_by_email(email))

# ---- Trading ----

@app.post("/buy", response_model=UserOut)
def buy(body: TradeIn, request: Request, store: AccountStore = Depends(get_store)):
    st = request.app.state
    with st.user_locks.hold(body.email):
        user = store.get_by_email(body.email)
        st.trader.buy(user, body.ticker, body.units)
        store.save(user)
    return user_out(user)

@app.post("/sell", response_model=UserOut)
def sell(body: TradeIn, request: Request, store: AccountStore = Depends(get_store)):
    st = request.app.state
    with st.user_locks.hold(body.email):
        user = store.get_by_email(body.email)
        st.trader.sell(user, body.ticker, body.units)
        store.save(user)
    return user_out(user)

# ---- Prices ----

@app.get("/prices")
def prices(request: Request):
    return request.app.state.feed.snapshot()

@app.websocket("/ws")
async def ws_prices(ws: WebSocket):
    hub: Broadcaster = ws.app.state.hub
    await ws.accept()
    hub.add(ws)
    try:
        # push-only channel; inbound text and binary frames are read and dropped
        while True:
            msg = await ws.receive()
            if msg["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    finally:
        hub.discard(ws)

def run():
    import uvicorn
    log.info("Starting server on port %d", CFG.port)
    uvicorn.run(app, host="0.0.0.0", port=CFG.port)
