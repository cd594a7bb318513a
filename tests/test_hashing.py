import pytest
from hypothesis import given, strategies as st

from cnfkit.hashing import hash_cnf


@given(st.binary(max_size=64))
def test_hash_fits_in_32_bits(data):
    value = hash_cnf(data)
    assert 0 <= value < 2**32


@given(st.binary(max_size=64))
def test_hash_is_deterministic_and_buffer_agnostic(data):
    expected = hash_cnf(data)
    assert hash_cnf(bytes(data)) == expected
    assert hash_cnf(bytearray(data)) == expected
    assert hash_cnf(memoryview(data)) == expected


def test_str_key_is_rejected():
    with pytest.raises(TypeError):
        hash_cnf("abcd")


def test_int_key_is_rejected():
    with pytest.raises(TypeError):
        hash_cnf(5)


def test_tail_lengths_give_distinct_hashes():
    keys = [b"abcd" + b"x" * n for n in range(4)]
    hashes = {hash_cnf(k) for k in keys}
    assert len(hashes) == len(keys)


def test_length_is_mixed_into_hash():
    keys = [b"\x00" * n for n in range(9)]
    hashes = {hash_cnf(k) for k in keys}
    assert len(hashes) == len(keys)


def test_each_byte_position_matters():
    base = bytearray(b"0123456789")
    reference = hash_cnf(base)
    changed = []
    for position in range(len(base)):
        variant = bytearray(base)
        variant[position] ^= 0x01
        changed.append(hash_cnf(variant))
    assert reference not in changed
    assert len(set(changed)) == len(base)


def test_small_integer_keys_do_not_collide():
    hashes = {hash_cnf(n.to_bytes(4, "little")) for n in range(2000)}
    assert len(hashes) == 2000