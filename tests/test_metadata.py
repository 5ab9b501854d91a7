import pytest

from numledger.metadata import (
    Metadata,
    RevertedMetadataSpecValue,
    compute_metadata,
    revert_metadata,
    revert_metadata_spec_key,
    reverted_metadata,
    reverted_metadata_spec_key,
    spec_metadata,
)


def test_spec_keys():
    assert spec_metadata("foo") == "com.numary.spec/foo"
    assert revert_metadata_spec_key() == "com.numary.spec/state/reverts"
    assert reverted_metadata_spec_key() == "com.numary.spec/state/reverted"


def test_compute_metadata():
    assert compute_metadata("k", {"a": 1}) == {"k": {"a": 1}}


def test_revert_metadata():
    assert revert_metadata(12) == {revert_metadata_spec_key(): "12"}


def test_reverted_metadata():
    assert reverted_metadata(3) == {reverted_metadata_spec_key(): {"by": "3"}}
    assert RevertedMetadataSpecValue(**reverted_metadata(3)[reverted_metadata_spec_key()]) == (
        RevertedMetadataSpecValue(by="3")
    )


def test_merge_overrides_and_returns_self():
    m = Metadata({"a": 1, "b": 2})
    result = m.merge({"b": 3, "c": 4})
    assert result is m
    assert m == {"a": 1, "b": 3, "c": 4}


def test_merge_none_keeps_content():
    m = Metadata({"a": 1})
    assert m.merge(None) == {"a": 1}


def test_mark_reverts():
    m = Metadata({"x": "y"})
    m.mark_reverts(5)
    assert m == {"x": "y", revert_metadata_spec_key(): "5"}


def test_is_equivalent_to():
    assert Metadata({"a": [1, 2]}).is_equivalent_to({"a": [1, 2]})
    assert not Metadata({"a": 1}).is_equivalent_to({"a": 2})
    assert not Metadata().is_equivalent_to(None)


def test_is_reverted():
    key = reverted_metadata_spec_key()
    assert Metadata({key: '"reverted"'}).is_reverted() is True
    assert Metadata({key: "reverted"}).is_reverted() is False


def test_is_reverted_missing_key():
    with pytest.raises(KeyError):
        Metadata().is_reverted()


def test_is_reverted_non_string():
    with pytest.raises(TypeError):
        Metadata({reverted_metadata_spec_key(): {"by": "1"}}).is_reverted()


@pytest.mark.parametrize("raw", ['{"a": 1, "b": "c"}', b'{"a": 1, "b": "c"}'])
def test_from_value_decodes_json(raw):
    m = Metadata.from_value(raw)
    assert isinstance(m, Metadata)
    assert m == {"a": 1, "b": "c"}


def test_from_value_none_and_null():
    assert Metadata.from_value(None) is None
    assert Metadata.from_value("null") == {}


def test_from_value_errors():
    with pytest.raises(TypeError):
        Metadata.from_value(12)
    with pytest.raises(ValueError):
        Metadata.from_value("[1, 2]")
    with pytest.raises(ValueError):
        Metadata.from_value("{not json")