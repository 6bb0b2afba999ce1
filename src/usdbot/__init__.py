"""
USD Stablecoin Conversion Bot.

An asynchronous bot that keeps a basket of USD stablecoins on Binance
and converts between them whenever a pair trades above parity, talking
to the exchange over the WebSocket API.
"""

__version__ = "1.0.0"
