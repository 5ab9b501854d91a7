"""Postings: single movements of an asset between two accounts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import Any

from .monetary import or_zero

_ASSET = re.compile(r"[A-Z][A-Z0-9]{0,16}(/[0-9]{1,6})?")
# Segments of letters, digits or underscores separated by colons.
_ADDRESS = re.compile(r"\w+(:\w+)*", re.ASCII)


def asset_is_valid(value: str) -> bool:
    return _ASSET.fullmatch(value) is not None


def validate_address(addr: str) -> bool:
    return _ADDRESS.fullmatch(addr) is not None


class PostingValidationError(ValueError):
    """Raised when a posting in a list is invalid; ``index`` says which one."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(message)
        self.index = index
        self.message = message


@dataclass(frozen=True)
class Posting:
    source: str = ""
    destination: str = ""
    amount: int = 0
    asset: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "destination": self.destination,
            "amount": self.amount,
            "asset": self.asset,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Posting:
        amount = data.get("amount")
        if amount is not None and (isinstance(amount, bool) or not isinstance(amount, int)):
            raise ValueError("invalid monetary int")
        return cls(
            source=data.get("source", ""),
            destination=data.get("destination", ""),
            amount=or_zero(amount),
            asset=data.get("asset", ""),
        )

    def _flipped(self) -> Posting:
        return replace(self, source=self.destination, destination=self.source)


class Postings(list):
    """An ordered list of postings."""

    def invert(self) -> None:
        """Reverse the order of the postings and swap their directions in place."""
        count = len(self)
        middle = count // 2 if count > 1 and count % 2 else None
        self[:] = [
            posting if index == middle else posting._flipped()
            for index, posting in enumerate(reversed(self))
        ]

    def validate(self) -> None:
        """Raise PostingValidationError for the first invalid posting."""
        for index, posting in enumerate(self):
            if posting.amount < 0:
                raise PostingValidationError(index, "negative amount")
            if not validate_address(posting.source):
                raise PostingValidationError(index, "invalid source address")
            if not validate_address(posting.destination):
                raise PostingValidationError(index, "invalid destination address")
            if not asset_is_valid(posting.asset):
                raise PostingValidationError(index, "invalid asset")

    @classmethod
    def from_value(cls, value: Any) -> Postings | None:
        """Decode postings stored as JSON text or bytes."""
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8")
        if not isinstance(value, str):
            raise TypeError(f"unsupported postings value type {type(value).__name__}")
        decoded = json.loads(value)
        if decoded is None:
            return cls()
        if not isinstance(decoded, list):
            raise ValueError("postings must be a JSON array")
        return cls(Posting.from_dict(item) for item in decoded)