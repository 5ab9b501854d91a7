"""The storage interface of a ledger and the queries it answers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from .contract import Mapping
from .log import Log
from .metadata import Metadata
from .models import Account, AccountWithVolumes, MigrationInfo
from .transaction import ExpandedTransaction
from .volumes import AssetsVolumes, Volumes

QUERY_DEFAULT_PAGE_SIZE = 15

T = TypeVar("T")


@dataclass
class Cursor(Generic[T]):
    """One page of query results."""

    data: list[T] = field(default_factory=list)
    page_size: int = 0
    has_more: bool = False
    previous: str = ""
    next: str = ""


@dataclass
class TransactionsQueryFilters:
    reference: str = ""
    destination: str = ""
    source: str = ""
    account: str = ""
    end_time: datetime | None = None
    start_time: datetime | None = None
    metadata: dict[str, str] | None = None


@dataclass
class TransactionsQuery:
    page_size: int = QUERY_DEFAULT_PAGE_SIZE
    after_tx_id: int = 0
    filters: TransactionsQueryFilters = field(default_factory=TransactionsQueryFilters)

    def with_page_size(self, page_size: int) -> TransactionsQuery:
        if page_size:
            self.page_size = page_size
        return self

    def with_after_tx_id(self, after: int) -> TransactionsQuery:
        self.after_tx_id = after
        return self

    def with_start_time_filter(self, start: datetime | None) -> TransactionsQuery:
        if start is not None:
            self.filters.start_time = start
        return self

    def with_end_time_filter(self, end: datetime | None) -> TransactionsQuery:
        if end is not None:
            self.filters.end_time = end
        return self

    def with_account_filter(self, account: str) -> TransactionsQuery:
        self.filters.account = account
        return self

    def with_destination_filter(self, dest: str) -> TransactionsQuery:
        self.filters.destination = dest
        return self

    def with_reference_filter(self, ref: str) -> TransactionsQuery:
        self.filters.reference = ref
        return self

    def with_source_filter(self, source: str) -> TransactionsQuery:
        self.filters.source = source
        return self

    def with_metadata_filter(self, metadata: dict[str, str] | None) -> TransactionsQuery:
        self.filters.metadata = metadata
        return self


class BalanceOperator(str, Enum):
    E = "e"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    NE = "ne"


DEFAULT_BALANCE_OPERATOR = BalanceOperator.GTE


def new_balance_operator(value: str) -> BalanceOperator:
    """Return the operator named by ``value``; raise ValueError when unknown."""
    try:
        return BalanceOperator(value)
    except ValueError:
        raise ValueError(f"invalid balance operator {value!r}") from None


@dataclass
class AccountsQueryFilters:
    address: str = ""
    balance: str = ""
    balance_operator: BalanceOperator | None = None
    metadata: dict[str, str] | None = None


@dataclass
class AccountsQuery:
    page_size: int = QUERY_DEFAULT_PAGE_SIZE
    offset: int = 0
    after_address: str = ""
    filters: AccountsQueryFilters = field(default_factory=AccountsQueryFilters)

    def with_page_size(self, page_size: int) -> AccountsQuery:
        if page_size:
            self.page_size = page_size
        return self

    def with_offset(self, offset: int) -> AccountsQuery:
        self.offset = offset
        return self

    def with_after_address(self, after: str) -> AccountsQuery:
        self.after_address = after
        return self

    def with_address_filter(self, address: str) -> AccountsQuery:
        self.filters.address = address
        return self

    def with_balance_filter(self, balance: str) -> AccountsQuery:
        self.filters.balance = balance
        return self

    def with_balance_operator_filter(self, operator: BalanceOperator | None) -> AccountsQuery:
        self.filters.balance_operator = operator
        return self

    def with_metadata_filter(self, metadata: dict[str, str] | None) -> AccountsQuery:
        self.filters.metadata = metadata
        return self


@dataclass
class BalancesQueryFilters:
    address_regexp: str = ""


@dataclass
class BalancesQuery:
    page_size: int = QUERY_DEFAULT_PAGE_SIZE
    offset: int = 0
    after_address: str = ""
    filters: BalancesQueryFilters = field(default_factory=BalancesQueryFilters)

    def with_after_address(self, after: str) -> BalancesQuery:
        self.after_address = after
        return self

    def with_offset(self, offset: int) -> BalancesQuery:
        self.offset = offset
        return self

    def with_address_filter(self, address: str) -> BalancesQuery:
        self.filters.address_regexp = address
        return self

    def with_page_size(self, page_size: int) -> BalancesQuery:
        self.page_size = page_size
        return self


@dataclass
class LogsQueryFilters:
    end_time: datetime | None = None
    start_time: datetime | None = None


@dataclass
class LogsQuery:
    after_id: int = 0
    page_size: int = QUERY_DEFAULT_PAGE_SIZE
    filters: LogsQueryFilters = field(default_factory=LogsQueryFilters)

    def with_after_id(self, after: int) -> LogsQuery:
        self.after_id = after
        return self

    def with_page_size(self, page_size: int) -> LogsQuery:
        if page_size:
            self.page_size = page_size
        return self

    def with_start_time_filter(self, start: datetime | None) -> LogsQuery:
        if start is not None:
            self.filters.start_time = start
        return self

    def with_end_time_filter(self, end: datetime | None) -> LogsQuery:
        if end is not None:
            self.filters.end_time = end
        return self


class Store(ABC):
    """Persistent storage of one ledger."""

    @abstractmethod
    def get_last_transaction(self) -> ExpandedTransaction | None: ...

    @abstractmethod
    def count_transactions(self, query: TransactionsQuery) -> int: ...

    @abstractmethod
    def get_transactions(self, query: TransactionsQuery) -> Cursor[ExpandedTransaction]: ...

    @abstractmethod
    def get_transaction(self, txid: int) -> ExpandedTransaction | None: ...

    @abstractmethod
    def get_account(self, address: str) -> Account | None: ...

    @abstractmethod
    def get_assets_volumes(self, address: str) -> AssetsVolumes: ...

    @abstractmethod
    def get_account_with_volumes(self, address: str) -> AccountWithVolumes: ...

    @abstractmethod
    def get_volumes(self, address: str, asset: str) -> Volumes: ...

    @abstractmethod
    def count_accounts(self, query: AccountsQuery) -> int: ...

    @abstractmethod
    def get_accounts(self, query: AccountsQuery) -> Cursor[Account]: ...

    @abstractmethod
    def get_balances(self, query: BalancesQuery) -> Cursor[dict[str, dict[str, int]]]: ...

    @abstractmethod
    def get_balances_aggregated(self, query: BalancesQuery) -> dict[str, int]: ...

    @abstractmethod
    def get_last_log(self) -> Log | None: ...

    @abstractmethod
    def get_logs(self, query: LogsQuery) -> Cursor[Log]: ...

    @abstractmethod
    def load_mapping(self) -> Mapping | None: ...

    @abstractmethod
    def get_migrations_available(self) -> list[MigrationInfo]: ...

    @abstractmethod
    def get_migrations_done(self) -> list[MigrationInfo]: ...

    @abstractmethod
    def update_transaction_metadata(self, txid: int, metadata: Metadata, at: datetime) -> None: ...

    @abstractmethod
    def update_account_metadata(self, address: str, metadata: Metadata, at: datetime) -> None: ...

    @abstractmethod
    def commit(self, *txs: ExpandedTransaction) -> None: ...

    @abstractmethod
    def save_mapping(self, mapping: Mapping) -> None: ...

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def initialize(self) -> bool: ...

    @abstractmethod
    def close(self) -> None: ...