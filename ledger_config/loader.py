"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen dataclasses
of ``ledger_config.schema``, checking it for internal consistency.

Invariants enforced
-------------------
* Account codes are unique.
* Every role binding names an account of the chart.
* Every parse or consistency error raises ``ConfigurationError`` naming
  the source; no silent defaults for required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed content for change detection.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import AccountDef, LedgerConfig
from ledger_kernel.domain.arithmetic import to_decimal
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.ledger import AccountType
from ledger_kernel.exceptions import ConfigurationError, LedgerKernelError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.ledger_store import LedgerStore

logger = get_logger("config.loader")

DEFAULT_SET = Path(__file__).parent / "sets" / "default.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, is not valid YAML, or
            does not hold a mapping at the top level.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(str(path), "file not found") from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_account(data: dict[str, Any], source: str = "<config>") -> AccountDef:
    """Parse one ``accounts`` entry."""
    try:
        code = str(data["code"])
        name = str(data["name"])
        raw_type = data["type"]
    except (KeyError, TypeError) as exc:
        raise ConfigurationError(source, f"account entry {data!r} is missing {exc}") from None

    try:
        account_type = AccountType(str(raw_type).lower())
    except ValueError:
        raise ConfigurationError(source, f"account {code}: unknown type {raw_type!r}") from None

    currency = data.get("currency")
    if currency is not None and not CurrencyRegistry.is_valid(str(currency)):
        raise ConfigurationError(source, f"account {code}: unknown currency {currency!r}")

    try:
        opening_balance = to_decimal(str(data.get("opening_balance", "0")))
    except LedgerKernelError as exc:
        raise ConfigurationError(source, f"account {code}: {exc}") from exc

    return AccountDef(
        code=code,
        name=name,
        account_type=account_type,
        currency=str(currency).upper() if currency is not None else None,
        opening_balance=opening_balance,
        is_active=bool(data.get("is_active", True)),
    )


def parse_config(data: dict[str, Any], source: str = "<config>") -> LedgerConfig:
    """
    Parse and validate a whole configuration set.

    Raises:
        ConfigurationError: on a missing key, duplicate account code,
            unknown currency, or a role bound to an account not in the chart.
    """
    for key in ("name", "currency", "accounts"):
        if key not in data:
            raise ConfigurationError(source, f"missing required key '{key}'")

    currency = str(data["currency"]).upper()
    if not CurrencyRegistry.is_valid(currency):
        raise ConfigurationError(source, f"unknown currency {data['currency']!r}")

    accounts = tuple(parse_account(entry, source) for entry in data["accounts"] or ())
    codes = [a.code for a in accounts]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ConfigurationError(source, f"duplicate account codes: {', '.join(duplicates)}")

    bindings = {str(role): str(code) for role, code in (data.get("role_bindings") or {}).items()}
    unknown = sorted(role for role, code in bindings.items() if code not in codes)
    if unknown:
        raise ConfigurationError(
            source, f"roles bound to accounts not in the chart: {', '.join(unknown)}",
        )

    config = LedgerConfig(
        name=str(data["name"]),
        version=int(data.get("version", 1)),
        currency=currency,
        accounts=accounts,
        role_bindings=bindings,
        unit_cost_places=int(data.get("unit_cost_places", 4)),
        checksum=compute_checksum(data),
    )
    logger.info("ledger_config_loaded", extra={
        "config_name": config.name,
        "config_version": config.version,
        "account_count": len(config.accounts),
        "role_count": len(config.role_bindings),
        "checksum": config.checksum,
    })
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; identical data, identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_config(path: Path | str) -> LedgerConfig:
    path = Path(path)
    return parse_config(load_yaml_file(path), source=str(path))


def get_default_config() -> LedgerConfig:
    """The packaged default chart (``sets/default.yaml``)."""
    return load_config(DEFAULT_SET)


def seed_accounts(store: LedgerStore, config: LedgerConfig) -> None:
    """Open every account of ``config`` in ``store``."""
    for account in config.accounts:
        store.open_account(
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            currency=config.currency_of(account),
            opening_balance=account.opening_balance,
            is_active=account.is_active,
        )
    logger.info("ledger_accounts_seeded", extra={
        "config_name": config.name,
        "account_count": len(config.accounts),
    })
