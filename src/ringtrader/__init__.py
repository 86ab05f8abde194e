"""
Bridge-Currency Ring Trading Bot.

An asynchronous bot that polls Binance prices and jumps between held
coins through a bridge currency whenever the market ratio beats the
recorded benchmark ratio by more than fees and the scout margin.
"""

__version__ = "1.0.0"
__author__ = "Tim"
