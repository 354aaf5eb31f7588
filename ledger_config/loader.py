"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the settings file and the seed chart of accounts and parses them
into the frozen dataclasses of ``ledger_config.schema``.

Architecture position
---------------------
**Config layer** -- consumed by scripts and application start-up.  The
kernel never imports this package; it receives plain values (URL, minor
unit, prefix) and domain objects.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* ``LEDGER_CONFIG`` selects the settings file and ``LEDGER_DATABASE_URL``
  overrides its database URL; nothing else reads the environment.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``database_url`` / account ``code``  -> ``KeyError``.
* Bad currency, minor unit, log level or account code  -> ``ValueError``
  (``InvalidAccountCodeError`` for codes).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from ledger_kernel.db.base import MONEY_SCALE
from ledger_kernel.domain.chart import AccountClass, ChartOfAccounts
from ledger_kernel.logging_config import get_logger
from ledger_config.schema import AccountDef, LedgerSettings

logger = get_logger("config.loader")

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_SETTINGS_PATH = DATA_DIR / "settings.yaml"
DEFAULT_CHART_PATH = DATA_DIR / "chart_of_accounts.yaml"

CONFIG_ENV_VAR = "LEDGER_CONFIG"
DATABASE_URL_ENV_VAR = "LEDGER_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _parse_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be true or false, got {value!r}")


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse ``LedgerSettings`` from the top-level settings dict.

    Preconditions:
        - ``data["ledger"]["database_url"]`` is present.
    Raises:
        KeyError: if ``ledger`` or ``database_url`` is missing.
        ValueError: on an invalid currency, minor unit or log level.
    """
    ledger = data["ledger"]

    currency = str(ledger.get("currency", "COP")).upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"currency must be a 3-letter ISO 4217 code, got {currency!r}")

    minor_unit = ledger.get("minor_unit", 2)
    if isinstance(minor_unit, bool) or not isinstance(minor_unit, int) or minor_unit < 0:
        raise ValueError(f"minor_unit must be a non-negative integer, got {minor_unit!r}")
    if minor_unit > MONEY_SCALE:
        raise ValueError(
            f"minor_unit {minor_unit} exceeds the {MONEY_SCALE} decimals the journal tables store"
        )

    log_level = str(ledger.get("log_level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log_level {log_level!r}")

    return LedgerSettings(
        database_url=str(ledger["database_url"]),
        entity_name=str(ledger.get("entity_name", "Copropiedad")),
        currency=currency,
        minor_unit=minor_unit,
        entry_number_prefix=str(ledger.get("entry_number_prefix", "CC-")),
        enforce_open_periods=_parse_bool(
            ledger.get("enforce_open_periods", False), "enforce_open_periods",
        ),
        log_level=log_level,
        reporting=dict(data.get("reporting") or {}),
    )


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Load settings from ``path``, ``$LEDGER_CONFIG`` or the bundled file.

    ``$LEDGER_DATABASE_URL``, when set and non-empty, replaces the file's
    database URL.
    """
    env = os.environ if environ is None else environ
    source = Path(path or env.get(CONFIG_ENV_VAR) or DEFAULT_SETTINGS_PATH)
    data = load_yaml_file(source)

    url_override = env.get(DATABASE_URL_ENV_VAR)
    if url_override:
        data = {**data, "ledger": {**(data.get("ledger") or {}), "database_url": url_override}}

    settings = parse_settings(data)
    logger.info(
        "settings_loaded",
        extra={
            "source": str(source),
            "database_url_from_env": bool(url_override),
            "entity_name": settings.entity_name,
        },
    )
    return settings


def parse_account(data: dict[str, Any]) -> AccountDef:
    """
    Parse one ``AccountDef``.

    Codes are read as strings even when YAML would type them as integers.
    """
    tracks = data.get("tracks_counterparty", False)
    active = data.get("active", True)
    return AccountDef(
        code=str(data["code"]),
        name=str(data["name"]),
        class_name=str(data["class"]),
        tracks_counterparty=_parse_bool(tracks, "tracks_counterparty"),
        active=_parse_bool(active, "active"),
    )


def load_account_defs(path: Path | str | None = None) -> tuple[AccountDef, ...]:
    data = load_yaml_file(Path(path or DEFAULT_CHART_PATH))
    return tuple(parse_account(item) for item in data.get("accounts", []))


def load_chart(
    path: Path | str | None = None,
    labels: dict[str, AccountClass] | None = None,
) -> ChartOfAccounts:
    """
    Build a ``ChartOfAccounts`` from a chart file (bundled seed by default).

    Raises:
        InvalidAccountCodeError: a code outside the PUC segment layout.
        DuplicateAccountError: a code declared twice.
    """
    defs = load_account_defs(path)
    chart = ChartOfAccounts.from_accounts((d.to_account() for d in defs), labels=labels)
    logger.info("chart_loaded", extra={"account_count": len(chart)})
    return chart
