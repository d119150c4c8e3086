"""
Trading bounded context: domain layer.

This module contains all domain logic for the trading context:
- Per-trade metrics (tax, profit, ROI)
- Portfolio analytics
- Trending card rankings and market summaries
"""
