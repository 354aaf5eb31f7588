"""
Ledger Kernel - accounting core for horizontal-property administration.

An append-only double-entry ledger with:
- Chart of accounts (PUC segment codes, class derived once per chart)
- Single admission chokepoint (debits == credits, known active accounts)
- Corrections by reversal, never by mutation
- Accounting periods that close
"""

__version__ = "0.1.0"
