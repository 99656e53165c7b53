import pytest

from ramd.p2p_message import Noop, from_json, to_json


def test_wire_form_is_tagged_by_variant():
    assert to_json(Noop("hi")) == '{"Noop":{"data":"hi"}}'


@pytest.mark.parametrize("data", ["", "hello", "quote \" and \\ slash", "ünïcode ✓"])
def test_round_trip(data):
    message = Noop(data)
    assert from_json(to_json(message)) == message


def test_from_json_accepts_bytes():
    assert from_json(to_json(Noop("abc")).encode()) == Noop("abc")


def test_unknown_variant_rejected():
    with pytest.raises(ValueError, match="unknown variant"):
        from_json('{"Other":{"data":"x"}}')


def test_missing_data_rejected():
    with pytest.raises(ValueError, match="data"):
        from_json('{"Noop":{}}')


def test_wrong_data_type_rejected():
    with pytest.raises(ValueError):
        from_json('{"Noop":{"data":5}}')


def test_invalid_json_rejected():
    with pytest.raises(ValueError):
        from_json("{not json")


def test_non_message_cannot_be_encoded():
    with pytest.raises(TypeError):
        to_json("Noop")