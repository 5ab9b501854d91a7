"""Contracts binding account patterns to balance rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from .expr import Expr, parse_rule_expr


@dataclass
class Contract:
    name: str
    account: str
    expr: Expr

    def match(self, addr: str) -> bool:
        """Whether the account pattern (``*`` as wildcard) matches ``addr``."""
        return re.search(self.account.replace("*", ".*"), addr) is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Contract:
        return cls(
            name=data.get("name", ""),
            account=data.get("account", ""),
            expr=parse_rule_expr(data.get("expr")),
        )


@dataclass
class Mapping:
    contracts: list[Contract] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mapping:
        return cls([Contract.from_dict(c) for c in data.get("contracts") or []])