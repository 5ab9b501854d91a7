from datetime import datetime, timezone

from numledger.metadata import Metadata
from numledger.models import (
    WORLD,
    Account,
    AccountWithVolumes,
    AdditionalOperations,
    MigrationInfo,
    Script,
    ScriptData,
)
from numledger.volumes import AssetsVolumes, Volumes


def test_world_account_address():
    account = Account(WORLD)
    assert account.address == "world"
    assert account.metadata == {}


def test_account_defaults_are_independent():
    a = Account("users:001")
    b = Account("users:002")
    a.metadata["k"] = "v"
    assert b.metadata == {}
    assert a.metadata == {"k": "v"}
    assert isinstance(a.metadata, Metadata)


def test_account_with_volumes_extends_account():
    volumes = AssetsVolumes({"COIN": Volumes(100, 0)})
    acc = AccountWithVolumes("users:001", Metadata({"a": 1}), volumes, volumes.balances())
    assert isinstance(acc, Account)
    assert acc.address == "users:001"
    assert acc.metadata == {"a": 1}
    assert acc.balances == {"COIN": volumes["COIN"].balance()}


def test_account_with_volumes_defaults():
    acc = AccountWithVolumes("bank")
    assert acc.volumes == {}
    assert acc.balances == {}
    assert acc == AccountWithVolumes("bank", Metadata(), AssetsVolumes(), {})


def test_migration_info_defaults():
    info = MigrationInfo("0", "init")
    assert info.state == ""
    assert info.date is None
    when = datetime(2022, 3, 29, tzinfo=timezone.utc)
    done = MigrationInfo("0", "init", "DONE", when)
    assert done.date == when
    assert done.state == "DONE"


def test_additional_operations_default_independent():
    first = AdditionalOperations()
    first.set_account_meta["alice"] = Metadata({"x": 1})
    assert AdditionalOperations().set_account_meta == {}
    assert first.set_account_meta == {"alice": {"x": 1}}


def test_script_data_inherits_script():
    data = ScriptData(plain="send", vars={"dest": "users:042"}, reference="tx_ref")
    assert isinstance(data, Script)
    assert data.plain == "send"
    assert data.vars == {"dest": "users:042"}
    assert data.reference == "tx_ref"
    assert data.timestamp is None
    assert data.metadata == {}


def test_script_defaults():
    assert Script() == Script(plain="", vars={})
    assert ScriptData().plain == ""