import pytest

from numledger.monetary import or_zero, parse_monetary_int

BIG = (
    "199999999999999999992919191919192929292939847477171818284637291884661818183647392936472918836161728274766266161728493736383838"
)


def test_parse_very_big_amount():
    assert (
        parse_monetary_int(BIG)
        == 199999999999999999992919191919192929292939847477171818284637291884661818183647392936472918836161728274766266161728493736383838
    )


@pytest.mark.parametrize("text", ["0", "42", "-42", "100000000000000000000000"])
def test_parse_round_trips_through_str(text):
    assert str(parse_monetary_int(text)) == text


def test_parse_accepts_plus_sign():
    assert parse_monetary_int("+7") == 7


@pytest.mark.parametrize("text", ["", "abc", "1.5", "0x10", " 1", "1_000", "--1", "1e3"])
def test_parse_rejects_malformed(text):
    with pytest.raises(ValueError, match="invalid monetary int"):
        parse_monetary_int(text)


def test_parse_rejects_non_string():
    with pytest.raises(ValueError, match="invalid monetary int"):
        parse_monetary_int(12)


def test_or_zero():
    assert or_zero(None) == 0
    assert or_zero(7) == 7
    assert or_zero(-3) == -3