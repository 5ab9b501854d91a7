"""Input and output volumes of accounts per asset."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .monetary import or_zero


@dataclass(frozen=True)
class Volumes:
    input: int = 0
    output: int = 0

    def balance(self) -> int:
        return or_zero(self.input) - or_zero(self.output)

    def to_dict(self) -> dict[str, int]:
        return {
            "input": or_zero(self.input),
            "output": or_zero(self.output),
            "balance": self.balance(),
        }


AssetsBalances = dict
AccountsBalances = dict


class AssetsVolumes(dict):
    """Volumes keyed by asset."""

    def balances(self) -> dict[str, int]:
        return {asset: volumes.balance() for asset, volumes in self.items()}


def _amount(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("invalid monetary int")
    return value


class AccountsAssetsVolumes(dict):
    """Volumes keyed by account, then by asset."""

    def get_volumes(self, account: str, asset: str) -> Volumes:
        volumes = self.get(account, {}).get(asset)
        if volumes is None:
            return Volumes()
        return Volumes(input=or_zero(volumes.input), output=or_zero(volumes.output))

    def set_volumes(self, account: str, asset: str, volumes: Volumes) -> None:
        self.setdefault(account, AssetsVolumes())[asset] = Volumes(
            input=or_zero(volumes.input), output=or_zero(volumes.output)
        )

    def add_input(self, account: str, asset: str, amount: int | None) -> None:
        assets = self.setdefault(account, AssetsVolumes())
        current = assets.get(asset, Volumes())
        assets[asset] = Volumes(
            input=or_zero(current.input) + or_zero(amount), output=or_zero(current.output)
        )

    def add_output(self, account: str, asset: str, amount: int | None) -> None:
        assets = self.setdefault(account, AssetsVolumes())
        current = assets.get(asset, Volumes())
        assets[asset] = Volumes(
            input=or_zero(current.input), output=or_zero(current.output) + or_zero(amount)
        )

    def has_account(self, account: str) -> bool:
        return account in self

    def has_account_and_asset(self, account: str, asset: str) -> bool:
        return asset in self.get(account, {})

    @classmethod
    def from_value(cls, value: Any) -> AccountsAssetsVolumes | None:
        """Decode volumes stored as JSON text or bytes."""
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8")
        if not isinstance(value, str):
            raise TypeError(f"unsupported volumes value type {type(value).__name__}")
        decoded = json.loads(value)
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError("volumes must be a JSON object")
        return cls(
            {
                account: AssetsVolumes(
                    {
                        asset: Volumes(
                            input=_amount(entry.get("input")),
                            output=_amount(entry.get("output")),
                        )
                        for asset, entry in (assets or {}).items()
                    }
                )
                for account, assets in decoded.items()
            }
        )


def _aggregate(
    txs: Iterable[Any], pick: Callable[[Any], dict | None]
) -> AccountsAssetsVolumes:
    result = AccountsAssetsVolumes()
    for tx in txs:
        known = AccountsAssetsVolumes(pick(tx) or {})
        for posting in tx.postings:
            for account in (posting.source, posting.destination):
                if not result.has_account_and_asset(account, posting.asset):
                    result.set_volumes(
                        account, posting.asset, known.get_volumes(account, posting.asset)
                    )
    return result


def aggregate_pre_commit_volumes(*args: Any) -> AccountsAssetsVolumes:
    """Volumes of every touched account and asset before the first transaction."""
    return _aggregate(args, lambda tx: tx.pre_commit_volumes)


def aggregate_post_commit_volumes(*args: Any) -> AccountsAssetsVolumes:
    """Volumes of every touched account and asset after the last transaction."""
    return _aggregate(reversed(args), lambda tx: tx.post_commit_volumes)