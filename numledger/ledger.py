"""A ledger: validated, contract-checked transactions over a store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from .contract import Contract, Mapping
from .errors import (
    ConflictError,
    InsufficientFundError,
    NotFoundError,
    TransactionCommitError,
    ValidationError,
)
from .expr import ConstantExpr, EvalContext, ExprGte, VariableExpr
from .log import Log
from .metadata import (
    META_TARGET_TYPE_ACCOUNT,
    META_TARGET_TYPE_TRANSACTION,
    Metadata,
    reverted_metadata,
)
from .models import WORLD, Account, AccountWithVolumes, MigrationInfo
from .monitor import Monitor, NoOpMonitor
from .store import (
    AccountsQuery,
    BalancesQuery,
    Cursor,
    LogsQuery,
    Store,
    TransactionsQuery,
)
from .transaction import ExpandedTransaction, TransactionData, _format_time
from .volume_agg import VolumeAggregator
from .volumes import AccountsAssetsVolumes

# The world account is exempt from every contract.
DEFAULT_CONTRACTS: tuple[Contract, ...] = (
    Contract(
        name="default",
        account="*",
        expr=ExprGte(VariableExpr("balance"), ConstantExpr(0)),
    ),
)


@dataclass(frozen=True)
class Stats:
    transactions: int
    accounts: int


def _utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc)


def _now_truncated() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _now_rounded() -> datetime:
    return (datetime.now(timezone.utc) + timedelta(microseconds=500_000)).replace(microsecond=0)


def _duration(delta: timedelta) -> str:
    micros = delta // timedelta(microseconds=1)
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds, fraction = divmod(rest, 1_000_000)
    text = str(seconds)
    if fraction:
        text += "." + f"{fraction:06d}".rstrip("0")
    text += "s"
    if hours:
        text = f"{hours}h{minutes}m{text}"
    elif minutes:
        text = f"{minutes}m{text}"
    return sign + text


class Ledger:
    """Executes and queries transactions of one ledger store."""

    def __init__(
        self,
        store: Store,
        monitor: Monitor | None = None,
        *,
        allow_past_timestamps: bool = False,
    ) -> None:
        self.store = store
        self.monitor = monitor if monitor is not None else NoOpMonitor()
        self.allow_past_timestamps = allow_past_timestamps

    def close(self) -> None:
        self.store.close()

    def get_transactions(self, query: TransactionsQuery) -> Cursor[ExpandedTransaction]:
        return self.store.get_transactions(query)

    def count_transactions(self, query: TransactionsQuery) -> int:
        return self.store.count_transactions(query)

    def get_transaction(self, tx_id: int) -> ExpandedTransaction:
        tx = self.store.get_transaction(tx_id)
        if tx is None:
            raise NotFoundError("transaction not found")
        return tx

    def save_mapping(self, mapping: Mapping) -> None:
        self.store.save_mapping(mapping)
        self.monitor.updated_mapping(self.store.name(), mapping)

    def load_mapping(self) -> Mapping | None:
        return self.store.load_mapping()

    def revert_transaction(self, tx_id: int) -> ExpandedTransaction:
        """Commit a transaction undoing ``tx_id`` and mark the original as reverted."""
        reverted = self.store.get_transaction(tx_id)
        if reverted is None:
            raise NotFoundError(f"transaction {tx_id} not found")
        if reverted.is_reverted():
            raise ValidationError(f"transaction {tx_id} already reverted")

        inverse = reverted.reverse()
        metadata = Metadata()
        metadata.mark_reverts(reverted.id)
        (revert,) = self.execute_txs_data(
            False,
            TransactionData(
                postings=inverse.postings,
                reference=inverse.reference,
                metadata=metadata,
                timestamp=inverse.timestamp,
            ),
        )

        self.store.update_transaction_metadata(
            reverted.id, reverted_metadata(revert.id), revert.timestamp
        )
        if reverted.metadata is None:
            reverted.metadata = Metadata()
        reverted.metadata.merge(reverted_metadata(revert.id))

        self.monitor.reverted_transaction(self.store.name(), reverted, revert)
        return revert

    def count_accounts(self, query: AccountsQuery) -> int:
        return self.store.count_accounts(query)

    def get_accounts(self, query: AccountsQuery) -> Cursor[Account]:
        return self.store.get_accounts(query)

    def get_account(self, address: str) -> AccountWithVolumes:
        return self.store.get_account_with_volumes(address)

    def get_balances(self, query: BalancesQuery) -> Cursor[dict[str, dict[str, int]]]:
        return self.store.get_balances(query)

    def get_balances_aggregated(self, query: BalancesQuery) -> dict[str, int]:
        return self.store.get_balances_aggregated(query)

    def save_meta(self, target_type: str, target_id: Any, metadata: Metadata) -> None:
        """Merge ``metadata`` into an account or a transaction."""
        if target_type == "":
            raise ValidationError("empty target type")
        if target_id == "":
            raise ValidationError("empty target id")

        if target_type == META_TARGET_TYPE_TRANSACTION:
            if isinstance(target_id, bool) or not isinstance(target_id, int):
                raise ValidationError(f"invalid transaction id {target_id!r}")
            self.store.update_transaction_metadata(target_id, metadata, _now_rounded())
        elif target_type == META_TARGET_TYPE_ACCOUNT:
            if not isinstance(target_id, str):
                raise ValidationError(f"invalid account address {target_id!r}")
            self.store.update_account_metadata(target_id, metadata, _now_rounded())
        else:
            raise ValidationError(f"unknown target type '{target_type}'")

        self.monitor.saved_metadata(self.store.name(), target_type, str(target_id), metadata)

    def get_logs(self, query: LogsQuery) -> Cursor[Log]:
        return self.store.get_logs(query)

    def execute_txs_data(
        self, preview: bool, *args: TransactionData
    ) -> list[ExpandedTransaction]:
        """Validate and apply a batch of transactions; commit unless ``preview``."""
        if not args:
            raise ValueError("no transaction data to execute")

        last_tx = self.store.get_last_transaction()
        aggregator = VolumeAggregator(self)
        next_id = last_tx.id + 1 if last_tx is not None else 0
        has_previous = last_tx is not None
        last_timestamp = (
            _utc(last_tx.timestamp)
            if last_tx is not None and last_tx.timestamp is not None
            else None
        )

        mapping = self.store.load_mapping()
        contracts = [*(mapping.contracts if mapping is not None else ()), *DEFAULT_CONTRACTS]

        used_references: set[str] = set()
        accounts: dict[str, AccountWithVolumes] = {}
        txs: list[ExpandedTransaction] = []

        for index, data in enumerate(args):
            if not data.postings:
                raise ValidationError(f"executing transaction data {index}: no postings")

            timestamp = _now_truncated() if data.timestamp is None else _utc(data.timestamp)
            if (
                has_previous
                and last_timestamp is not None
                and timestamp < last_timestamp
                and not self.allow_past_timestamps
            ):
                raise ValidationError(
                    "cannot pass a timestamp prior to the last transaction: "
                    f"{_format_time(timestamp)} (passed) is "
                    f"{_duration(last_timestamp - timestamp)} before "
                    f"{_format_time(last_timestamp)} (last)"
                )
            last_timestamp = timestamp

            if data.reference:
                if data.reference in used_references:
                    raise ConflictError()
                used_references.add(data.reference)
                existing = self.get_transactions(
                    TransactionsQuery().with_reference_filter(data.reference)
                )
                if existing.data:
                    raise ConflictError()

            tva = aggregator.next_tx()
            for posting in data.postings:
                try:
                    tva.transfer(
                        posting.source, posting.destination, posting.asset,
                        posting.amount, accounts,
                    )
                except Exception as err:
                    raise TransactionCommitError(index, err) from err

            for account, volumes in tva.post_commit_volumes.items():
                if account not in accounts:
                    try:
                        accounts[account] = self.get_account(account)
                    except Exception as err:
                        raise TransactionCommitError(index, err) from err
                known = accounts[account]
                known.volumes.update(volumes)
                known.balances = known.volumes.balances()
                if account == WORLD:
                    continue
                contract = next((c for c in contracts if c.match(account)), None)
                if contract is None:
                    continue
                for asset, volume in volumes.items():
                    ctx = EvalContext(
                        variables={"balance": volume.balance()},
                        metadata=known.metadata,
                        asset=asset,
                    )
                    if not contract.expr.eval(ctx):
                        raise InsufficientFundError(asset)

            tx = ExpandedTransaction(
                postings=data.postings,
                reference=data.reference,
                metadata=data.metadata if data.metadata is not None else Metadata(),
                timestamp=timestamp,
                id=next_id,
                pre_commit_volumes=tva.pre_commit_volumes,
                post_commit_volumes=tva.post_commit_volumes,
            )
            txs.append(tx)
            has_previous = True
            next_id += 1

        if preview:
            return txs

        self.store.commit(*txs)
        self.monitor.committed_transactions(self.store.name(), *txs)
        return txs

    def get_migrations_info(self) -> list[MigrationInfo]:
        """Every available migration, marked DONE with its date or TO DO."""
        available = self.store.get_migrations_available()
        done: dict[str, datetime | None] = {}
        for migration in self.store.get_migrations_done():
            done.setdefault(migration.version, migration.date)
        return [
            MigrationInfo(
                version=m.version, name=m.name, state="DONE", date=done[m.version]
            )
            if m.version in done
            else MigrationInfo(version=m.version, name=m.name, state="TO DO")
            for m in available
        ]

    def stats(self) -> Stats:
        return Stats(
            transactions=self.store.count_transactions(TransactionsQuery()),
            accounts=self.store.count_accounts(AccountsQuery()),
        )

    def verify(self) -> None:
        """Check that the last transaction's post-commit volumes follow from its postings.

        Raises ValidationError on a mismatch; an empty ledger, or a last
        transaction stored without volumes, passes.
        """
        last = self.store.get_last_transaction()
        if last is None or not last.pre_commit_volumes or not last.post_commit_volumes:
            return None

        expected = AccountsAssetsVolumes()
        for account, assets in last.pre_commit_volumes.items():
            for asset, volumes in assets.items():
                expected.set_volumes(account, asset, volumes)
        for posting in last.postings:
            expected.add_output(posting.source, posting.asset, posting.amount)
            expected.add_input(posting.destination, posting.asset, posting.amount)

        for account, assets in last.post_commit_volumes.items():
            for asset, volumes in assets.items():
                want = expected.get_volumes(account, asset).balance()
                got = volumes.balance()
                if want != got:
                    raise ValidationError(
                        f"transaction {last.id}: balance of {account} in {asset} "
                        f"is {got}, expected {want}"
                    )
        return None