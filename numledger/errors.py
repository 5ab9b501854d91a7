"""Errors raised by ledger operations."""

from __future__ import annotations

from enum import Enum
from typing import Iterator


class LedgerError(Exception):
    """Base class of the errors a ledger raises."""


class TransactionCommitError(LedgerError):
    """A transaction of a batch could not be processed; ``err`` says why."""

    def __init__(self, tx_index: int, err: BaseException) -> None:
        super().__init__(f"processing tx {tx_index}: {err}")
        self.tx_index = tx_index
        self.err = err
        self.__cause__ = err


class InsufficientFundError(LedgerError):
    """A contract rejected the resulting balance of an account."""

    def __init__(self, asset: str) -> None:
        super().__init__(f"balance.insufficient.{asset}")
        self.asset = asset


class ValidationError(LedgerError):
    """The request is invalid."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


class ConflictError(LedgerError):
    """A transaction reference is already in use."""

    def __init__(self) -> None:
        super().__init__("conflict error on reference")


class ScriptErrorCode(str, Enum):
    INSUFFICIENT_FUND = "INSUFFICIENT_FUND"
    COMPILATION_FAILED = "COMPILATION_FAILED"
    NO_SCRIPT = "NO_SCRIPT"
    METADATA_OVERRIDE = "METADATA_OVERRIDE"


def _code_text(code: str) -> str:
    return code.value if isinstance(code, ScriptErrorCode) else str(code)


class ScriptError(LedgerError):
    """A script could not be run; ``code`` classifies the failure."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"[{_code_text(code)}] {message}")
        self.code = code
        self.message = message


class LockError(LedgerError):
    """A ledger lock could not be taken or released."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(str(err))
        self.err = err
        self.__cause__ = err


class NotFoundError(LedgerError):
    """The requested object does not exist."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


def _chain(err: BaseException | None) -> Iterator[BaseException]:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        wrapped = getattr(err, "err", None)
        err = wrapped if isinstance(wrapped, BaseException) else err.__cause__


def is_script_error_with_code(err: BaseException | None, code: str) -> bool:
    """Whether ``err`` or an error it wraps is a ScriptError with ``code``."""
    return any(
        isinstance(e, ScriptError) and _code_text(e.code) == _code_text(code)
        for e in _chain(err)
    )