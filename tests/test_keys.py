import pytest

from pod.errors import InvalidId
from pod.keys import derive, validate_raw_id


def test_derive_is_deterministic():
    assert derive("CxYz12AbC") == derive("CxYz12AbC")


def test_derive_ignores_surrounding_whitespace():
    assert derive("  abc ") == derive("abc")


def test_derive_is_short_and_lowercase_base36():
    key = derive("B-9_zzQ1")
    assert 0 < len(key) <= 13
    assert set(key) <= set("0123456789abcdefghijklmnopqrstuvwxyz")


def test_distinct_ids_get_distinct_keys():
    ids = [f"post{i}" for i in range(2000)]
    assert len({derive(raw_id) for raw_id in ids}) == len(ids)


def test_derive_is_case_sensitive():
    # Post ids are case sensitive upstream.
    assert derive("AbC") != derive("abc")


@pytest.mark.parametrize("raw_id", [None, "", "   ", "has space", "semi;colon", "x" * 65])
def test_invalid_ids_raise(raw_id):
    with pytest.raises(InvalidId):
        derive(raw_id)


def test_validate_returns_stripped_id():
    assert validate_raw_id(" C1_-d ") == "C1_-d"
