from numledger.errors import (
    ConflictError,
    InsufficientFundError,
    LedgerError,
    LockError,
    NotFoundError,
    ScriptError,
    ScriptErrorCode,
    TransactionCommitError,
    ValidationError,
    is_script_error_with_code,
)


def test_insufficient_fund_message_names_asset():
    err = InsufficientFundError("USD")
    assert str(err) == "balance.insufficient.USD"
    assert err.asset == "USD"


def test_conflict_error_message():
    assert str(ConflictError()) == "conflict error on reference"


def test_script_error_message_and_code():
    err = ScriptError(ScriptErrorCode.NO_SCRIPT, "no script to execute")
    assert str(err) == "[NO_SCRIPT] no script to execute"
    assert err.code == ScriptErrorCode.NO_SCRIPT


def test_transaction_commit_error_wraps_cause():
    cause = ValidationError("boom")
    err = TransactionCommitError(2, cause)
    assert str(err) == "processing tx 2: boom"
    assert err.err is cause
    assert err.__cause__ is cause
    assert err.tx_index == 2


def test_is_script_error_with_code_matches_code_only():
    err = ScriptError(ScriptErrorCode.COMPILATION_FAILED, "bad")
    assert is_script_error_with_code(err, ScriptErrorCode.COMPILATION_FAILED)
    assert is_script_error_with_code(err, "COMPILATION_FAILED")
    assert not is_script_error_with_code(err, ScriptErrorCode.NO_SCRIPT)


def test_is_script_error_with_code_walks_wrapped_errors():
    inner = ScriptError(ScriptErrorCode.INSUFFICIENT_FUND, "account had insufficient funds")
    wrapped = TransactionCommitError(0, inner)
    assert is_script_error_with_code(wrapped, ScriptErrorCode.INSUFFICIENT_FUND)
    assert not is_script_error_with_code(ValidationError("x"), ScriptErrorCode.INSUFFICIENT_FUND)
    assert not is_script_error_with_code(None, ScriptErrorCode.INSUFFICIENT_FUND)


def test_lock_error_uses_wrapped_message():
    cause = RuntimeError("redis down")
    err = LockError(cause)
    assert str(err) == str(cause)
    assert err.err is cause


def test_not_found_error_message_and_base_class():
    err = NotFoundError("transaction not found")
    assert err.msg == "transaction not found"
    assert str(err) == "transaction not found"
    assert isinstance(err, LedgerError)