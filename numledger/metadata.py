"""Free-form metadata attached to accounts and transactions."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any

NUMARY_NAMESPACE = "com.numary.spec/"
_REVERT_KEY = "state/reverts"
_REVERTED_KEY = "state/reverted"

META_TARGET_TYPE_ACCOUNT = "ACCOUNT"
META_TARGET_TYPE_TRANSACTION = "TRANSACTION"


def spec_metadata(name: str) -> str:
    """Return the namespaced key for a specification metadata entry."""
    return NUMARY_NAMESPACE + name


def reverted_metadata_spec_key() -> str:
    return spec_metadata(_REVERTED_KEY)


def revert_metadata_spec_key() -> str:
    return spec_metadata(_REVERT_KEY)


class Metadata(dict):
    """A mapping of metadata keys to JSON-compatible values."""

    def merge(self, other: dict[str, Any] | None) -> Metadata:
        """Copy every entry of ``other`` into this mapping and return it."""
        if other:
            self.update(other)
        return self

    def is_equivalent_to(self, other: dict[str, Any] | None) -> bool:
        return other is not None and dict(self) == dict(other)

    def mark_reverts(self, tx_id: int) -> None:
        """Record that this transaction reverts transaction ``tx_id``."""
        self.merge(revert_metadata(tx_id))

    def is_reverted(self) -> bool:
        value = self[reverted_metadata_spec_key()]
        if not isinstance(value, str):
            raise TypeError(f"reverted marker is not a string: {value!r}")
        return value == '"reverted"'

    @classmethod
    def from_value(cls, value: Any) -> Metadata | None:
        """Decode metadata stored as JSON text or bytes."""
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8")
        if not isinstance(value, str):
            raise TypeError(f"unsupported metadata value type {type(value).__name__}")
        decoded = json.loads(value)
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError("metadata must be a JSON object")
        return cls(decoded)


@dataclass(frozen=True)
class RevertedMetadataSpecValue:
    """Value stored under the reverted key: the id of the reverting transaction."""

    by: str


def compute_metadata(key: str, value: Any) -> Metadata:
    return Metadata({key: value})


def reverted_metadata(by: int) -> Metadata:
    return compute_metadata(
        reverted_metadata_spec_key(), asdict(RevertedMetadataSpecValue(by=str(by)))
    )


def revert_metadata(tx_id: int) -> Metadata:
    return compute_metadata(revert_metadata_spec_key(), str(tx_id))