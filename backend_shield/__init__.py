"""
Backend Shield: DeFi protocol analytics over Solana transaction streams.

Classifies stream transactions against known protocol program IDs
(Jupiter, Raydium, MarginFi, OpenBook), normalizes them into canonical
records, and answers analytics queries (volume, fees, wallets, daily stats)
over the in-memory transaction window.
"""

__version__ = "0.1.0"
