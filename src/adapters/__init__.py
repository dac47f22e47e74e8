"""Adapters that plug HTTP, SQLite, asyncio and terminal output into the core ports."""
