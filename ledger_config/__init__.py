"""
ledger_config -- settings and seed chart of accounts.

Use ``load_settings()`` for runtime settings and ``load_chart()`` for the
bundled PUC chart.  The kernel never imports this package.
"""

from ledger_config.loader import (
    CONFIG_ENV_VAR,
    DATABASE_URL_ENV_VAR,
    load_account_defs,
    load_chart,
    load_settings,
)
from ledger_config.schema import AccountDef, LedgerSettings

__all__ = [
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "AccountDef",
    "LedgerSettings",
    "load_account_defs",
    "load_chart",
    "load_settings",
]
