from __future__ import annotations

import asyncio
import json
import logging
from typing import Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .prices import PriceFeed

log = logging.getLogger("papertrade")

def prices_message(prices: dict) -> str:
    return json.dumps({"type": "PRICES", "payload": prices})

def _is_open(ws: WebSocket) -> bool:
    return (ws.client_state == WebSocketState.CONNECTED
            and ws.application_state == WebSocketState.CONNECTED)

class Broadcaster:
    def __init__(self):
        self.clients: Set[WebSocket] = set()

    def add(self, ws: WebSocket) -> None:
        self.clients.add(ws)
        log.info("ws client connected (%d open)", len(self.clients))

    def discard(self, ws: WebSocket) -> None:
        if ws in self.clients:
            self.clients.discard(ws)
            log.info("ws client disconnected (%d open)", len(self.clients))

    async def broadcast(self, data: str) -> int:
        sent = 0
        for ws in list(self.clients):
            if not _is_open(ws):
                continue
            try:
                await ws.send_text(data)
                sent += 1
            except Exception as e:
                log.debug("ws send failed, dropping client: %s", e)
                self.discard(ws)
        return sent

async def tick_once(feed: PriceFeed, hub: Broadcaster) -> int:
    prices = feed.step()
    return await hub.broadcast(prices_message(prices))

async def run_ticker(feed: PriceFeed, hub: Broadcaster, interval: float = 1.0):
    """Step the feed and push it to every open listener, forever."""
    while True:
        await asyncio.sleep(interval)
        try:
            await tick_once(feed, hub)
        except Exception as e:
            log.error("tick error: %s", e, exc_info=True)
