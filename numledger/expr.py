"""Rule expressions evaluated against account balances and metadata."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .metadata import Metadata


class ExprParseError(ValueError):
    """Raised when a rule expression is malformed."""


@dataclass
class EvalContext:
    variables: dict[str, Any] = field(default_factory=dict)
    metadata: Metadata = field(default_factory=Metadata)
    asset: str = ""


class Expr(ABC):
    """A boolean rule."""

    @abstractmethod
    def eval(self, ctx: EvalContext) -> bool:
        """Evaluate the rule in the given context."""


class _Value(ABC):
    @abstractmethod
    def value(self, ctx: EvalContext) -> Any:
        """Resolve the operand in the given context."""


@dataclass(frozen=True)
class ConstantExpr(_Value):
    constant: Any

    def value(self, ctx: EvalContext) -> Any:
        return self.constant


@dataclass(frozen=True)
class VariableExpr(_Value):
    name: str

    def value(self, ctx: EvalContext) -> Any:
        return ctx.variables.get(self.name)


@dataclass(frozen=True)
class MetaExpr(_Value):
    name: str

    def value(self, ctx: EvalContext) -> Any:
        return (ctx.metadata or {}).get(self.name)


@dataclass(frozen=True)
class ExprOr(Expr):
    exprs: tuple[Expr, ...] = ()

    def eval(self, ctx: EvalContext) -> bool:
        return any(e.eval(ctx) for e in self.exprs)


@dataclass(frozen=True)
class ExprAnd(Expr):
    exprs: tuple[Expr, ...] = ()

    def eval(self, ctx: EvalContext) -> bool:
        return all(e.eval(ctx) for e in self.exprs)


def _amounts(op1: _Value, op2: _Value, ctx: EvalContext) -> tuple[int, int]:
    a, b = op1.value(ctx), op2.value(ctx)
    for v in (a, b):
        if isinstance(v, bool) or not isinstance(v, int):
            raise TypeError(f"expected a monetary amount, got {v!r}")
    return a, b


@dataclass(frozen=True)
class ExprEq(Expr):
    op1: _Value
    op2: _Value

    def eval(self, ctx: EvalContext) -> bool:
        a, b = self.op1.value(ctx), self.op2.value(ctx)
        return type(a) is type(b) and a == b


@dataclass(frozen=True)
class ExprGt(Expr):
    op1: _Value
    op2: _Value

    def eval(self, ctx: EvalContext) -> bool:
        a, b = _amounts(self.op1, self.op2, ctx)
        return a > b


@dataclass(frozen=True)
class ExprLt(Expr):
    op1: _Value
    op2: _Value

    def eval(self, ctx: EvalContext) -> bool:
        a, b = _amounts(self.op1, self.op2, ctx)
        return a < b


@dataclass(frozen=True)
class ExprGte(Expr):
    op1: _Value
    op2: _Value

    def eval(self, ctx: EvalContext) -> bool:
        a, b = _amounts(self.op1, self.op2, ctx)
        return a >= b


@dataclass(frozen=True)
class ExprLte(Expr):
    op1: _Value
    op2: _Value

    def eval(self, ctx: EvalContext) -> bool:
        a, b = _amounts(self.op1, self.op2, ctx)
        return a <= b


_COMPARISONS = {"$eq": ExprEq, "$gt": ExprGt, "$gte": ExprGte, "$lt": ExprLt, "$lte": ExprLte}
_OPERATOR_NAMES = {cls: key for key, cls in _COMPARISONS.items()}


def _parse(v: Any) -> Expr | _Value | None:
    if isinstance(v, dict):
        if len(v) != 1:
            raise ExprParseError("malformed expression")
        ((key, arg),) = v.items()
        if not key.startswith("$"):
            return None
        if key == "$meta":
            if not isinstance(arg, str):
                raise ExprParseError("$meta operator invalid")
            return MetaExpr(arg)
        if key in ("$or", "$and"):
            if not isinstance(arg, list):
                raise ExprParseError("Expected slice for operator " + key)
            exprs = []
            for item in arg:
                parsed = _parse(item)
                if not isinstance(parsed, Expr):
                    raise ExprParseError("unexpected value when parsing " + key)
                exprs.append(parsed)
            return ExprAnd(tuple(exprs)) if key == "$and" else ExprOr(tuple(exprs))
        if key in _COMPARISONS:
            if not isinstance(arg, list):
                raise ExprParseError("expected array when using $eq")
            if len(arg) != 2:
                raise ExprParseError("expected 2 items when using $eq")
            op1 = _parse(arg[0])
            if not isinstance(op1, _Value):
                raise ExprParseError("op1 must be valuable")
            op2 = _parse(arg[1])
            if not isinstance(op2, _Value):
                raise ExprParseError("op2 must be valuable")
            return _COMPARISONS[key](op1, op2)
        raise ExprParseError(f"unknown operator '{key}'")
    if isinstance(v, str):
        return VariableExpr(v[1:]) if v.startswith("$") else ConstantExpr(v)
    if isinstance(v, bool):
        return ConstantExpr(v)
    if isinstance(v, int):
        return ConstantExpr(v)
    if isinstance(v, float):
        if round(v) != v:
            raise ExprParseError("only integer supported")
        return ConstantExpr(int(v))
    return ConstantExpr(v)


def parse_rule_expr(value: dict[str, Any] | None) -> Expr:
    """Parse a JSON-like rule into an expression."""
    parsed = _parse(value if value is not None else {})
    if not isinstance(parsed, Expr):
        raise ExprParseError("expression is not a rule")
    return parsed


def expr_to_json(expr: Expr | _Value) -> Any:
    """Return the JSON-compatible form of an expression."""
    if isinstance(expr, ExprOr):
        return {"$or": [expr_to_json(e) for e in expr.exprs]}
    if isinstance(expr, ExprAnd):
        return {"$and": [expr_to_json(e) for e in expr.exprs]}
    if isinstance(expr, (ExprEq, ExprGt, ExprGte, ExprLt, ExprLte)):
        return {_OPERATOR_NAMES[type(expr)]: [expr_to_json(expr.op1), expr_to_json(expr.op2)]}
    if isinstance(expr, ConstantExpr):
        return expr.constant
    if isinstance(expr, VariableExpr):
        return "$" + expr.name
    if isinstance(expr, MetaExpr):
        return {"$meta": expr.name}
    raise TypeError(f"not an expression: {expr!r}")