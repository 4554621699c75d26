"""
quotewatch - terminal stock dashboard with MACD momentum.
"""

__version__ = "0.1.0"
