"""
Infrastructure adapters for the trading bounded context.

Each adapter implements a domain port (ABC) over the PostgreSQL store.
"""
