"""Tracking of account volumes across the transactions of a batch."""

from __future__ import annotations

from typing import Any

from .models import AccountWithVolumes
from .volumes import AccountsAssetsVolumes, Volumes


class TxVolumeAggregator:
    """Volumes before and after one transaction of a batch."""

    def __init__(
        self, aggregator: VolumeAggregator, previous: TxVolumeAggregator | None
    ) -> None:
        self._aggregator = aggregator
        self._previous = previous
        self.pre_commit_volumes = AccountsAssetsVolumes()
        self.post_commit_volumes = AccountsAssetsVolumes()

    def find_in_previous_txs(self, addr: str, asset: str) -> Volumes | None:
        """The latest volumes of ``addr`` in ``asset`` left by earlier transactions."""
        current = self._previous
        while current is not None:
            volumes = current.post_commit_volumes.get(addr, {}).get(asset)
            if volumes is not None:
                return volumes
            current = current._previous
        return None

    def _initial_volumes(
        self, addr: str, asset: str, accounts: dict[str, AccountWithVolumes]
    ) -> Volumes:
        previous = self.find_in_previous_txs(addr, asset)
        if previous is not None:
            return previous
        known = accounts.get(addr)
        if known is not None and asset in known.volumes:
            return known.volumes[asset]
        fetched = self._aggregator.ledger.get_account(addr)
        if known is None:
            accounts[addr] = known = fetched
        known.volumes[asset] = fetched.volumes.get(asset, Volumes())
        return known.volumes[asset]

    def transfer(
        self,
        source: str,
        destination: str,
        asset: str,
        amount: int,
        accounts: dict[str, AccountWithVolumes],
    ) -> None:
        """Move ``amount`` of ``asset`` and record the volumes it touches."""
        for addr in (source, destination):
            if not self.pre_commit_volumes.has_account_and_asset(addr, asset):
                self.pre_commit_volumes.set_volumes(
                    addr, asset, self._initial_volumes(addr, asset, accounts)
                )
            if not self.post_commit_volumes.has_account_and_asset(addr, asset):
                self.post_commit_volumes.set_volumes(
                    addr, asset, self.pre_commit_volumes.get_volumes(addr, asset)
                )
        self.post_commit_volumes.add_output(source, asset, amount)
        self.post_commit_volumes.add_input(destination, asset, amount)


class VolumeAggregator:
    """Chains per-transaction aggregators; ``ledger`` supplies stored accounts."""

    def __init__(self, ledger: Any) -> None:
        self.ledger = ledger
        self.txs: list[TxVolumeAggregator] = []

    def next_tx(self) -> TxVolumeAggregator:
        previous = self.txs[-1] if self.txs else None
        tva = TxVolumeAggregator(self, previous)
        self.txs.append(tva)
        return tva