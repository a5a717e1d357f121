"""YNAB budgets, accounts, categories and transactions as MCP tools and CLI commands."""

__version__ = "0.1.0"
