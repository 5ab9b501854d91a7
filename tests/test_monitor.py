import pytest

from numledger.contract import Mapping
from numledger.metadata import Metadata
from numledger.monitor import Monitor, NoOpMonitor
from numledger.transaction import ExpandedTransaction


def test_monitor_is_abstract():
    with pytest.raises(TypeError):
        Monitor()


def test_noop_monitor_leaves_metadata_untouched():
    metadata = Metadata({"a": "b"})
    result = NoOpMonitor().saved_metadata("main", "ACCOUNT", "users:001", metadata)
    assert result is None
    assert metadata == {"a": "b"}


def test_noop_monitor_leaves_transactions_untouched():
    tx = ExpandedTransaction(reference="ref", id=3)
    revert = ExpandedTransaction(reference="revert_ref", id=4)
    monitor = NoOpMonitor()
    assert monitor.committed_transactions("main", tx, revert) is None
    assert monitor.reverted_transaction("main", tx, revert) is None
    assert tx.reference == "ref" and tx.id == 3
    assert revert.reference == "revert_ref" and revert.id == 4


def test_noop_monitor_leaves_mapping_untouched():
    mapping = Mapping()
    assert NoOpMonitor().updated_mapping("main", mapping) is None
    assert mapping.contracts == []