# reports/__init__.py
"""
Reports app - read-only views over the ledger and billing tables.

- cashflow: per-account balances derived from transactions
- bfr: working-capital need per student
- forecast: projected revenue, expenses and balances per month
- positions: founder advances and rebalancing suggestions
- journal: filtered, paged transaction listing and exports
"""
