"""Plain records of the ledger: accounts, migrations, scripts and side operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .metadata import Metadata
from .volumes import AssetsVolumes

WORLD = "world"

AccountsMeta = dict


@dataclass
class Account:
    address: str
    metadata: Metadata = field(default_factory=Metadata)


@dataclass
class AccountWithVolumes(Account):
    volumes: AssetsVolumes = field(default_factory=AssetsVolumes)
    balances: dict[str, int] = field(default_factory=dict)


@dataclass
class MigrationInfo:
    version: str
    name: str
    state: str = ""
    date: datetime | None = None


@dataclass
class AdditionalOperations:
    """Operations performed alongside a transaction, such as account metadata updates."""

    set_account_meta: dict[str, Metadata] = field(default_factory=dict)


@dataclass
class Script:
    plain: str = ""
    vars: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScriptData(Script):
    timestamp: datetime | None = None
    reference: str = ""
    metadata: Metadata = field(default_factory=Metadata)