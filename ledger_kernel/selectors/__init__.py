"""Read-only query selectors."""

from ledger_kernel.selectors.journal_selector import JournalSelector

__all__ = ["JournalSelector"]
