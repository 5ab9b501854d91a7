from datetime import datetime, timezone

import pytest

from numledger.log import (
    LogProcessor,
    SetMetadata,
    hydrate_log,
    new_set_metadata_log,
    new_transaction_log,
    new_transaction_log_with_date,
)
from numledger.metadata import Metadata
from numledger.models import Account
from numledger.posting import Posting, Postings
from numledger.transaction import ExpandedTransaction, Transaction
from numledger.volumes import Volumes


def test_log_hash():
    d = datetime.fromtimestamp(1648542028, tz=timezone.utc)
    log1 = new_transaction_log_with_date(None, Transaction(metadata=Metadata()), d)
    log2 = new_transaction_log_with_date(log1, Transaction(metadata=Metadata()), d)
    assert log2.id == 1
    assert log2.hash == "9ee060170400f556b7e1575cb13f9db004f150a08355c7431c62bc639166431e"


def test_log_processor():
    inputs = [
        Transaction(postings=Postings([Posting("world", "orders:1234", 100, "USD")]),
                    metadata=Metadata(), id=0),
        Transaction(postings=Postings([
            Posting("orders:1234", "merchant:1234", 90, "USD"),
            Posting("orders:1234", "fees", 10, "USD"),
        ]), metadata=Metadata(), id=1),
        SetMetadata("TRANSACTION", 0, Metadata({"psp-ref": "#ABCDEF"})),
        SetMetadata("ACCOUNT", "orders:1234", Metadata({"booking-online": True})),
    ]
    p = LogProcessor()
    previous = None
    for item in inputs:
        if isinstance(item, Transaction):
            log = new_transaction_log(previous, item)
        else:
            log = new_set_metadata_log(previous, datetime.now(timezone.utc), item)
        p.process_next_log(log)
        previous = log

    V = Volumes
    assert p.transactions == [
        ExpandedTransaction(
            postings=Postings([Posting("world", "orders:1234", 100, "USD")]),
            metadata=Metadata({"psp-ref": "#ABCDEF"}), id=0,
            pre_commit_volumes={"world": {"USD": V(0, 0)}, "orders:1234": {"USD": V(0, 0)}},
            post_commit_volumes={"world": {"USD": V(0, 100)}, "orders:1234": {"USD": V(100, 0)}},
        ),
        ExpandedTransaction(
            postings=Postings([
                Posting("orders:1234", "merchant:1234", 90, "USD"),
                Posting("orders:1234", "fees", 10, "USD"),
            ]),
            metadata=Metadata(), id=1,
            pre_commit_volumes={"orders:1234": {"USD": V(100, 0)},
                                "merchant:1234": {"USD": V(0, 0)}, "fees": {"USD": V(0, 0)}},
            post_commit_volumes={"orders:1234": {"USD": V(100, 100)},
                                 "merchant:1234": {"USD": V(90, 0)}, "fees": {"USD": V(10, 0)}},
        ),
    ]
    assert p.volumes == {
        "world": {"USD": V(0, 100)},
        "orders:1234": {"USD": V(100, 100)},
        "merchant:1234": {"USD": V(90, 0)},
        "fees": {"USD": V(10, 0)},
    }
    assert p.accounts == {
        "world": Account("world", Metadata()),
        "orders:1234": Account("orders:1234", Metadata({"booking-online": True})),
        "merchant:1234": Account("merchant:1234", Metadata()),
        "fees": Account("fees", Metadata()),
    }


def test_hydrate_log():
    sm = hydrate_log("SET_METADATA", '{"targetType":"transaction","targetId":4,"metadata":{"a":1}}')
    assert sm.target_id == 4 and sm.metadata == {"a": 1}
    tx = hydrate_log("NEW_TRANSACTION", '{"postings":[],"reference":"r","metadata":{},"txid":2}')
    assert tx.id == 2 and tx.reference == "r"
    with pytest.raises(ValueError):
        hydrate_log("OTHER", "{}")
    with pytest.raises(ValueError):
        SetMetadata.from_dict({"targetType": "TRANSACTION", "targetId": "x"})