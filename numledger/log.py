"""The ledger's hash-chained log and its replay."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .metadata import META_TARGET_TYPE_ACCOUNT, META_TARGET_TYPE_TRANSACTION, Metadata
from .models import Account
from .transaction import (
    ExpandedTransaction,
    Transaction,
    _format_time,
    _sorted,
    _to_jsonable,
    compute_hash,
)
from .volumes import AccountsAssetsVolumes

SET_METADATA_TYPE = "SET_METADATA"
NEW_TRANSACTION_TYPE = "NEW_TRANSACTION"


@dataclass
class Log:
    id: int
    type: str
    data: Any
    hash: str = ""
    date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "data": _to_jsonable(self.data),
            "hash": self.hash,
            "date": _format_time(self.date),
        }


@dataclass
class SetMetadata:
    target_type: str
    target_id: Any
    metadata: Metadata = field(default_factory=Metadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetType": self.target_type,
            "targetId": self.target_id,
            "metadata": None if self.metadata is None else _sorted(dict(self.metadata)),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SetMetadata:
        target_type = data.get("targetType", "")
        target_id = data.get("targetId")
        kind = target_type.upper()
        if kind == META_TARGET_TYPE_TRANSACTION:
            if isinstance(target_id, bool) or not isinstance(target_id, int) or target_id < 0:
                raise ValueError(f"invalid transaction id {target_id!r}")
        elif kind != META_TARGET_TYPE_ACCOUNT:
            raise ValueError(f"unknown target type {target_type!r}")
        metadata = data.get("metadata")
        return cls(target_type, target_id, None if metadata is None else Metadata(metadata))


def _next_id(previous_log: Log | None) -> int:
    return 0 if previous_log is None else previous_log.id + 1


def new_transaction_log_with_date(
    previous_log: Log | None, tx: Transaction, date: datetime | None
) -> Log:
    log = Log(id=_next_id(previous_log), type=NEW_TRANSACTION_TYPE, data=tx, date=date)
    log.hash = compute_hash(previous_log, log)
    return log


def new_transaction_log(previous_log: Log | None, tx: Transaction) -> Log:
    return new_transaction_log_with_date(previous_log, tx, tx.timestamp)


def new_set_metadata_log(previous_log: Log | None, at: datetime, metadata: SetMetadata) -> Log:
    log = Log(id=_next_id(previous_log), type=SET_METADATA_TYPE, data=metadata, date=at)
    log.hash = compute_hash(previous_log, log)
    return log


def hydrate_log(log_type: str, data: str) -> Transaction | SetMetadata:
    """Decode the JSON payload of a log of the given type."""
    if log_type == NEW_TRANSACTION_TYPE:
        return Transaction.from_dict(json.loads(data))
    if log_type == SET_METADATA_TYPE:
        return SetMetadata.from_dict(json.loads(data))
    raise ValueError("unknown type " + log_type)


class LogProcessor:
    """Replays logs to rebuild transactions, accounts and volumes."""

    def __init__(self) -> None:
        self.transactions: list[ExpandedTransaction] = []
        self.accounts: dict[str, Account] = {}
        self.volumes = AccountsAssetsVolumes()

    def _ensure_exists(self, *addresses: str) -> None:
        for address in addresses:
            self.accounts.setdefault(address, Account(address=address, metadata=Metadata()))

    def process_next_log(self, *args: Log) -> None:
        for log in args:
            if log.type == NEW_TRANSACTION_TYPE:
                self._process_transaction(log.data)
            elif log.type == SET_METADATA_TYPE:
                self._process_metadata(log.data)

    def _process_transaction(self, src: Transaction) -> None:
        tx = ExpandedTransaction(
            postings=src.postings,
            reference=src.reference,
            metadata=src.metadata,
            timestamp=src.timestamp,
            id=src.id,
        )
        self.transactions.append(tx)
        postings = tx.postings or ()
        for p in postings:
            for account in (p.source, p.destination):
                tx.pre_commit_volumes.set_volumes(
                    account, p.asset, self.volumes.get_volumes(account, p.asset)
                )
        for p in postings:
            self._ensure_exists(p.source, p.destination)
            self.volumes.add_output(p.source, p.asset, p.amount)
            self.volumes.add_input(p.destination, p.asset, p.amount)
        for p in postings:
            for account in (p.source, p.destination):
                tx.post_commit_volumes.set_volumes(
                    account, p.asset, self.volumes.get_volumes(account, p.asset)
                )

    def _process_metadata(self, sm: SetMetadata) -> None:
        if sm.target_type == META_TARGET_TYPE_ACCOUNT:
            self._ensure_exists(sm.target_id)
            self.accounts[sm.target_id].metadata.merge(sm.metadata)
        elif sm.target_type == META_TARGET_TYPE_TRANSACTION:
            tx = self.transactions[sm.target_id]
            if tx.metadata is None:
                tx.metadata = Metadata()
            tx.metadata.merge(sm.metadata)