"""Virtual stock-trading demo: accounts, simulated prices, buy/sell, WebSocket price push."""
