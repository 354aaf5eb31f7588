"""
Reporting Configuration Schema.

Controls how accounts are classified into statement sections and which
sign convention the income statement applies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Self

import yaml

from ledger_kernel.domain.chart import CLASS_LABELS, AccountClass
from ledger_kernel.logging_config import get_logger

logger = get_logger("reports.config")


class SignConvention(str, Enum):
    """
    How the income statement signs income and expense totals.

    DEBIT_MINUS_CREDIT applies ``debit - credit`` to every account, so a
    period with revenue shows a negative income total.  This is the formula
    the building's reports have always used and stays the default until the
    administration confirms otherwise.

    NATURAL applies each class's normal side: ``credit - debit`` for income,
    ``debit - credit`` for expense.
    """

    DEBIT_MINUS_CREDIT = "debit_minus_credit"
    NATURAL = "natural"


INCOME_SIGN_CONVENTION = SignConvention.DEBIT_MINUS_CREDIT


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.
    """

    # Free-text class label -> AccountClass (case-insensitive keys)
    class_labels: dict[str, AccountClass] = field(
        default_factory=lambda: dict(CLASS_LABELS),
    )

    income_sign_convention: SignConvention = INCOME_SIGN_CONVENTION

    # Entity name shown on reports
    entity_name: str = "Copropiedad"

    currency: str = "COP"

    # Whether retired accounts appear in the per-account reports
    include_inactive: bool = False

    def __post_init__(self):
        self.income_sign_convention = SignConvention(self.income_sign_convention)
        self.class_labels = {
            str(label).strip().lower(): AccountClass(value)
            for label, value in self.class_labels.items()
        }
        if len(self.currency) != 3:
            raise ValueError("currency must be a 3-letter ISO 4217 code")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """
        Create config from a dictionary.

        ``class_labels`` entries are merged over the built-in label table,
        so a building only lists the labels it adds or overrides.
        """
        data = dict(data)
        if "class_labels" in data:
            merged = dict(CLASS_LABELS)
            merged.update(
                {str(k).strip().lower(): AccountClass(v) for k, v in data["class_labels"].items()}
            )
            data["class_labels"] = merged
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Load the ``reporting:`` section of a settings file."""
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return cls.from_dict(raw.get("reporting") or {})
