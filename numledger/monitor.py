"""Observers notified of changes committed to a ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .contract import Mapping
from .metadata import Metadata
from .transaction import ExpandedTransaction


class Monitor(ABC):
    """Receives notifications of ledger changes."""

    @abstractmethod
    def committed_transactions(self, ledger: str, *args: ExpandedTransaction) -> None: ...

    @abstractmethod
    def saved_metadata(
        self, ledger: str, target_type: str, target_id: str, metadata: Metadata
    ) -> None: ...

    @abstractmethod
    def updated_mapping(self, ledger: str, mapping: Mapping) -> None: ...

    @abstractmethod
    def reverted_transaction(
        self, ledger: str, reverted: ExpandedTransaction, revert: ExpandedTransaction
    ) -> None: ...


class NoOpMonitor(Monitor):
    """A monitor that discards every notification, keeping only a count of them."""

    def __init__(self) -> None:
        self.discarded = 0

    def _discard(self) -> None:
        self.discarded += 1

    def committed_transactions(self, ledger: str, *args: ExpandedTransaction) -> None:
        self._discard()

    def saved_metadata(
        self, ledger: str, target_type: str, target_id: str, metadata: Metadata
    ) -> None:
        self._discard()

    def updated_mapping(self, ledger: str, mapping: Mapping) -> None:
        self._discard()

    def reverted_transaction(
        self, ledger: str, reverted: ExpandedTransaction, revert: ExpandedTransaction
    ) -> None:
        self._discard()