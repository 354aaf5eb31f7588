"""
Ledger configuration schema.

Typed, frozen views of the YAML files under ``ledger_config/data``.  The
loader parses into these types; nothing else reads the YAML.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ledger_kernel.domain.chart import Account

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for one building's ledger."""

    database_url: str
    entity_name: str = "Copropiedad"
    currency: str = "COP"
    minor_unit: int = 2  # decimal places of the currency's minor unit
    entry_number_prefix: str = "CC-"
    enforce_open_periods: bool = False
    log_level: str = "INFO"
    # Raw ``reporting:`` section, handed to ReportingConfig.from_dict
    reporting: dict[str, Any] = field(default_factory=dict, hash=False)


# ---------------------------------------------------------------------------
# Chart of accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountDef:
    """One account as declared in ``chart_of_accounts.yaml``."""

    code: str
    name: str
    class_name: str
    tracks_counterparty: bool = False
    active: bool = True

    def to_account(self) -> Account:
        return Account(
            code=self.code,
            name=self.name,
            class_name=self.class_name,
            tracks_counterparty=self.tracks_counterparty,
            active=self.active,
        )
