"""Transactions and their JSON encoding and hashing."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .metadata import Metadata, reverted_metadata_spec_key
from .posting import Posting, Postings
from .volumes import AccountsAssetsVolumes

_ZERO_TIME = "0001-01-01T00:00:00Z"


def _format_time(dt: datetime | None, nano: bool = True) -> str:
    if dt is None:
        return _ZERO_TIME
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    text = (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )
    if nano and dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    offset = dt.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time(value: str | None) -> datetime | None:
    if not value or value == _ZERO_TIME:
        return None
    text = value.replace("Z", "+00:00")
    if "." in text:
        head, rest = text.split(".", 1)
        digits = "".join(ch for ch in rest if ch.isdigit())
        tail = rest[len(digits):]
        text = f"{head}.{digits[:6].ljust(6, '0')}{tail}"
    return datetime.fromisoformat(text)


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sorted(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sorted(v) for v in value]
    return value


def _to_jsonable(value: Any) -> Any:
    return value.to_dict() if hasattr(value, "to_dict") else value


def _dumps(value: Any) -> bytes:
    text = json.dumps(_to_jsonable(value), ensure_ascii=False, separators=(",", ":"))
    for ch, esc in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026"),
                    ("\u2028", "\\u2028"), ("\u2029", "\\u2029")):
        text = text.replace(ch, esc)
    return text.encode("utf-8")


def compute_hash(previous: Any, current: Any) -> str:
    """SHA-256 over the JSON encodings of two values, as lowercase hex."""
    digest = hashlib.sha256()
    digest.update(_dumps(previous))
    digest.update(_dumps(current))
    return digest.hexdigest()


@dataclass
class TransactionData:
    postings: Postings | None = None
    reference: str = ""
    metadata: Metadata | None = None
    timestamp: datetime | None = None

    def reverse(self) -> TransactionData:
        """A transaction undoing this one's postings."""
        postings = Postings(self.postings or ())
        postings.invert()
        return TransactionData(
            postings=postings,
            reference="revert_" + self.reference if self.reference else "",
        )

    def _data_dict(self) -> dict[str, Any]:
        return {
            "postings": None if self.postings is None else [p.to_dict() for p in self.postings],
            "reference": self.reference,
            "metadata": None if self.metadata is None else _sorted(dict(self.metadata)),
        }


@dataclass
class Transaction(TransactionData):
    id: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = self._data_dict()
        data["timestamp"] = _format_time(self.timestamp)
        data["txid"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        postings = data.get("postings")
        metadata = data.get("metadata")
        return cls(
            postings=None if postings is None else Postings(Posting.from_dict(p) for p in postings),
            reference=data.get("reference", ""),
            metadata=None if metadata is None else Metadata(metadata),
            timestamp=_parse_time(data.get("timestamp")),
            id=data.get("txid", 0),
        )


def _volumes_dict(volumes: AccountsAssetsVolumes) -> dict[str, Any]:
    return {
        account: {asset: volumes[account][asset].to_dict() for asset in sorted(volumes[account])}
        for account in sorted(volumes)
    }


@dataclass
class ExpandedTransaction(Transaction):
    pre_commit_volumes: AccountsAssetsVolumes = field(default_factory=AccountsAssetsVolumes)
    post_commit_volumes: AccountsAssetsVolumes = field(default_factory=AccountsAssetsVolumes)

    def append_posting(self, posting: Posting) -> None:
        if self.postings is None:
            self.postings = Postings()
        self.postings.append(posting)

    def is_reverted(self) -> bool:
        return reverted_metadata_spec_key() in (self.metadata or {})

    def to_dict(self) -> dict[str, Any]:
        data = self._data_dict()
        data["txid"] = self.id
        if self.pre_commit_volumes:
            data["preCommitVolumes"] = _volumes_dict(self.pre_commit_volumes)
        if self.post_commit_volumes:
            data["postCommitVolumes"] = _volumes_dict(self.post_commit_volumes)
        data["timestamp"] = _format_time(self.timestamp, nano=False)
        return data