# numledger

A double-entry accounting ledger core for Python.

Money moves between accounts as **postings**. A posting has a source, a
destination, an integer amount of any size, and an asset code such as
`USD/2` or `COIN`. For each account and asset, the ledger keeps input and
output **volumes**. Before it accepts a batch of transactions, it checks
each touched account against the first **contract** (balance rule) whose
account pattern matches that account. The built-in default contract
requires a balance of at least zero for every account except `world`.

## Installation

```
pip install numledger
```

The `test` extra installs pytest, which the test suite in `tests/` uses.

## Modules

- `numledger.monetary`
  - Amounts are plain Python `int`s.
  - `parse_monetary_int` parses a base-10 amount and raises `ValueError` if the text is malformed.
  - `or_zero` turns `None` into `0`.
- `numledger.metadata`
  - `Metadata` is a `dict` with `merge`, `is_equivalent_to`, `mark_reverts`, `is_reverted` and `from_value`. `from_value` decodes JSON text or bytes.
  - The helpers `revert_metadata`, `reverted_metadata`, `revert_metadata_spec_key` and `reverted_metadata_spec_key` build the keys and values that mark reverts.
- `numledger.posting`
  - `Posting`, a frozen dataclass.
  - `Postings`, a list with:
    - `invert()`, which reverses the order of the postings and swaps source and destination in place;
    - `validate()`, which raises `PostingValidationError` carrying the index of the first bad posting.
  - `asset_is_valid` and `validate_address` check asset codes and colon-separated account addresses.
- `numledger.volumes`
  - `Volumes` (`input`, `output`, `balance()`), `AssetsVolumes` and `AccountsAssetsVolumes`.
  - `AccountsAssetsVolumes` provides `get_volumes`, `set_volumes`, `add_input`, `add_output`, `has_account` and `has_account_and_asset`.
  - `aggregate_pre_commit_volumes` and `aggregate_post_commit_volumes` combine volumes across several transactions.
- `numledger.models`: `Account`, `AccountWithVolumes`, `MigrationInfo`, `AdditionalOperations`, `Script` and `ScriptData` records.
- `numledger.expr`
  - Balance rules written as JSON-like dicts, such as `{"$gte": ["$balance", 0]}`.
  - Supported operators: `$and`, `$or`, `$eq`, `$gt`, `$gte`, `$lt`, `$lte` and `$meta`.
  - `parse_rule_expr` builds an `Expr` and raises `ExprParseError` on malformed input.
  - `expr_to_json` writes an expression back out.
  - An `Expr` is evaluated against an `EvalContext`.
- `numledger.contract`
  - `Contract` ties a rule to an account pattern in which `*` is a wildcard.
  - `Mapping` holds a list of contracts.
  - Both can be built with `from_dict`.
- `numledger.transaction`
  - `TransactionData` (with `reverse()`), `Transaction` and `ExpandedTransaction`. An `ExpandedTransaction` also carries its pre- and post-commit volumes.
  - `compute_hash` is a SHA-256 over the JSON forms of two values.
- `numledger.log`
  - Hash-chained `Log` entries, built with `new_transaction_log`, `new_transaction_log_with_date` and `new_set_metadata_log`.
  - `hydrate_log` decodes a log payload.
  - `LogProcessor` replays logs into transactions, accounts and volumes.
- `numledger.errors`
  - `LedgerError` and its subclasses: `ValidationError`, `ConflictError`, `InsufficientFundError`, `NotFoundError`, `TransactionCommitError`, `ScriptError` (with `ScriptErrorCode`) and `LockError`.
  - `is_script_error_with_code` also looks through wrapped errors.
- `numledger.store`
  - `Store`, the abstract persistence interface.
  - `Cursor` for result pages.
  - Chainable query objects: `TransactionsQuery`, `AccountsQuery`, `BalancesQuery` and `LogsQuery`.
  - `BalanceOperator` and `new_balance_operator`.
- `numledger.monitor`
  - `Monitor`, an abstract receiver of change notifications.
  - `NoOpMonitor`, which discards notifications and only counts them in `discarded`.
- `numledger.volume_agg`: `VolumeAggregator` and `TxVolumeAggregator` track volumes across the transactions of one batch.
- `numledger.ledger`: `Ledger(store, monitor=None, *, allow_past_timestamps=False)`. Its operations include:
  - `execute_txs_data(preview, *txs)`, which runs a batch and commits it unless `preview` is true;
  - `revert_transaction`;
  - `save_meta`;
  - the queries `get_*` and `count_*`;
  - `get_migrations_info` and `stats()`;
  - `verify()`, which checks the last transaction's post-commit balances against its postings.
- `numledger.locking`
  - `Lock`, a Redis-backed named lock. `try_lock(name)` returns an unlock function, or `None` if the lock is held; `lock(name)` retries until it gets the lock.
  - `build_lock(LockConfig(url=...))` connects with `redis.Redis.from_url`. If no timings are given, it uses a one-minute lock duration and a one-second retry interval.

## Example

```python
from numledger.contract import Contract
from numledger.expr import EvalContext, parse_rule_expr
from numledger.log import LogProcessor, new_transaction_log
from numledger.metadata import Metadata
from numledger.posting import Posting, Postings
from numledger.transaction import Transaction

postings = Postings([
    Posting(source="world", destination="users:001", amount=100, asset="COIN"),
])
postings.validate()

processor = LogProcessor()
log = new_transaction_log(None, Transaction(postings=postings, metadata=Metadata(), id=0))
processor.process_next_log(log)
assert processor.volumes.get_volumes("users:001", "COIN").balance() == 100

rule = Contract(
    name="orders",
    account="orders:*",
    expr=parse_rule_expr({"$gte": ["$balance", 0]}),
)
assert rule.match("orders:42")
assert rule.expr.eval(EvalContext(variables={"balance": 5}))
```

Most `Ledger` operations raise subclasses of `LedgerError`. An empty
batch passed to `execute_txs_data` raises `ValueError`.

## What this package does not do

- **No storage backend.** `Store` is an abstract class. To use a `Ledger`, you must supply your own implementation, for example one backed by a database.
- **No script language.** `ScriptData` and `ScriptError` are defined, but there is nothing that compiles or runs scripts. Transactions are submitted as postings through `execute_txs_data`.
- **No HTTP API, server or command-line program.** The package is a library only.