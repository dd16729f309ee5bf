import hashlib
from unittest import mock

import pytest

from scryptfile.kdf import blockmix_salsa8, salsa20_8, scrypt, smix

SALSA_IN = bytes.fromhex(
    "7e879a214f3ec9867ca940e641718f26baee555b8c61c1b50df846116dcd3b1d"
    "ee24f319df9b3d8514121e4b5ac5aa3276021d2909c74829edebc68db8b8c25e"
)
SALSA_OUT = bytes.fromhex(
    "a41f859c6608cc993b81cacb020cef05044b2181a2fd337dfd7b1c6396682f29"
    "b4393168e3c9e6bcfe6bc5b7a06d96bae424cc102c91745c24ad673dc7618f81"
)
EMPTY_VECTOR = bytes.fromhex(
    "77d6576238657b203b19ca42c18a0497f16b4844e3074ae8dfdffa3fede21442"
    "fcd0069ded0948f8326a753a0fc81f17e8d3e0fb2e0d3628cf35e20c38d18906"
)


def pure():
    return mock.patch.object(hashlib, "scrypt", None, create=True)


def test_salsa20_8_known_vector():
    assert salsa20_8(SALSA_IN) == SALSA_OUT


def test_salsa20_8_zero_is_fixed_point():
    assert salsa20_8(bytes(64)) == bytes(64)


def test_salsa20_8_rejects_wrong_length():
    with pytest.raises(ValueError):
        salsa20_8(bytes(63))


def test_blockmix_zero_is_fixed_point():
    assert blockmix_salsa8(bytes(256), 2) == bytes(256)


def test_blockmix_length_and_determinism():
    block = bytes(range(128)) * 2
    out = blockmix_salsa8(block, 2)
    assert len(out) == 256
    assert out == blockmix_salsa8(block, 2)
    assert out[:64] != out[64:128]


def test_blockmix_rejects_mismatched_length():
    with pytest.raises(ValueError):
        blockmix_salsa8(bytes(128), 2)
    with pytest.raises(ValueError):
        blockmix_salsa8(b"", 0)


def test_smix_zero_is_fixed_point():
    assert smix(bytes(128), 1, 4) == bytes(128)


def test_smix_depends_on_n():
    block = bytes(range(128))
    a = smix(block, 1, 4)
    b = smix(block, 1, 8)
    assert len(a) == len(b) == 128
    assert a != b
    assert a == smix(block, 1, 4)


@pytest.mark.parametrize("n", [0, 1, 3, 6])
def test_smix_rejects_bad_n(n):
    with pytest.raises(ValueError):
        smix(bytes(128), 1, n)


def test_scrypt_known_vector_fast_path():
    assert scrypt(b"", b"", 16, 1, 1, 64) == EMPTY_VECTOR


def test_scrypt_known_vector_pure_path():
    with pure():
        assert scrypt(b"", b"", 16, 1, 1, 64) == EMPTY_VECTOR


def test_scrypt_rfc_password_vector():
    password = b"password"
    expected = bytes.fromhex(
        "fdbabe1c9d3472007856e7190d01e9fe7c6ad7cbc8237830e77376634b373162"
        "2eaf30d92e22a3886ff109279d9830dac727afb94a83ee6d8360cbdfa2cc0640"
    )
    assert scrypt(password, b"NaCl", 1024, 8, 16, 64) == expected


@pytest.mark.parametrize(
    "n,r,p,buflen", [(4, 2, 3, 70), (2, 3, 2, 33), (8, 1, 1, 32), (32, 1, 2, 1)]
)
def test_pure_path_matches_fast_path(n, r, p, buflen):
    fast = scrypt(b"pass", b"salt", n, r, p, buflen)
    with pure():
        slow = scrypt(b"pass", b"salt", n, r, p, buflen)
    assert fast == slow
    assert len(fast) == buflen


def test_scrypt_zero_length_output():
    assert scrypt(b"pass", b"salt", 16, 1, 1, 0) == b""
    with pure():
        assert scrypt(b"pass", b"salt", 16, 1, 1, 0) == b""


def test_scrypt_prefix_property():
    long = scrypt(b"pass", b"salt", 16, 1, 1, 100)
    short = scrypt(b"pass", b"salt", 16, 1, 1, 40)
    assert long[:40] == short


def test_scrypt_salt_changes_output():
    assert scrypt(b"pass", b"a", 16, 1, 1, 32) != scrypt(b"pass", b"b", 16, 1, 1, 32)


@pytest.mark.parametrize("n", [0, 1, 3, 12])
def test_scrypt_rejects_bad_n(n):
    with pytest.raises(ValueError):
        scrypt(b"", b"", n, 1, 1, 32)


@pytest.mark.parametrize("r,p", [(0, 1), (1, 0), (1 << 15, 1 << 15)])
def test_scrypt_rejects_bad_rp(r, p):
    with pytest.raises(ValueError):
        scrypt(b"", b"", 16, r, p, 32)


def test_scrypt_rejects_bad_buflen():
    with pytest.raises(ValueError):
        scrypt(b"", b"", 16, 1, 1, (2**32 - 1) * 32 + 1)
    with pytest.raises(ValueError):
        scrypt(b"", b"", 16, 1, 1, -1)


def test_scrypt_rejects_unaddressable_memory():
    with pytest.raises(MemoryError):
        scrypt(b"", b"", 2**60, 2**29, 1, 32)