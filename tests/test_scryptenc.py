import hashlib
import io

import pytest

from scryptfile.errors import ErrorCode, ScryptError
from scryptfile.params import Params
from scryptfile.scryptenc import (
    PreparedDecryption,
    decrypt_buf,
    decrypt_file,
    encrypt_buf,
    encrypt_file,
    prepare_decrypt,
    print_file_params,
)

PASSWORD = b"password"
OTHER = b"secret"


def small_params():
    return Params(log_n=4, r=1, p=1)


def encrypt(data, passwd=PASSWORD):
    return encrypt_buf(data, passwd, small_params(), force=True)


def test_buffer_round_trip():
    data = b"hello scrypt world"
    blob = encrypt(data)
    assert len(blob) == len(data) + 128
    assert decrypt_buf(blob, PASSWORD, Params(), force=True) == data


def test_empty_round_trip():
    blob = encrypt(b"")
    assert len(blob) == 128
    assert decrypt_buf(blob, PASSWORD, force=True) == b""


def test_header_layout():
    params = Params(log_n=5, r=2, p=3)
    blob = encrypt_buf(b"abc", PASSWORD, params, force=True)
    assert blob[:7] == b"scrypt\x00"
    assert blob[7] == 5
    assert blob[8:12] == (2).to_bytes(4, "big")
    assert blob[12:16] == (3).to_bytes(4, "big")
    assert blob[48:64] == hashlib.sha256(blob[:48]).digest()[:16]


def test_decrypt_reports_params():
    blob = encrypt_buf(b"abc", PASSWORD, Params(log_n=5, r=2, p=1), force=True)
    found = Params()
    decrypt_buf(blob, PASSWORD, found, force=True)
    assert (found.log_n, found.r, found.p) == (5, 2, 1)


def test_salt_differs_between_encryptions():
    blobs = [encrypt(b"same") for _ in range(3)]
    salts = {blob[16:48] for blob in blobs}
    assert len(salts) == 3
    assert all(len(salt) == 32 for salt in salts)
    assert all(decrypt_buf(blob, PASSWORD, force=True) == b"same" for blob in blobs)


def test_wrong_password():
    blob = encrypt(b"data")
    with pytest.raises(ScryptError) as info:
        decrypt_buf(blob, OTHER, force=True)
    assert info.value.code == ErrorCode.EPASS


def test_tampered_body():
    blob = bytearray(encrypt(b"some data here"))
    blob[100] ^= 1
    with pytest.raises(ScryptError) as info:
        decrypt_buf(bytes(blob), PASSWORD, force=True)
    assert info.value.code == ErrorCode.EINVAL


def test_tampered_header_checksum():
    blob = bytearray(encrypt(b"x"))
    blob[20] ^= 1
    with pytest.raises(ScryptError) as info:
        decrypt_buf(bytes(blob), PASSWORD, force=True)
    assert info.value.code == ErrorCode.EINVAL


def test_bad_version():
    blob = bytearray(encrypt(b"x"))
    blob[6] = 1
    with pytest.raises(ScryptError) as info:
        decrypt_buf(bytes(blob), PASSWORD, force=True)
    assert info.value.code == ErrorCode.EVERSION


@pytest.mark.parametrize("data", [b"", b"scry", b"notscrypt" * 20, b"scrypt\x00" + bytes(50)])
def test_invalid_input(data):
    with pytest.raises(ScryptError) as info:
        decrypt_buf(data, PASSWORD, force=True)
    assert info.value.code == ErrorCode.EINVAL


def test_invalid_explicit_params():
    with pytest.raises(ScryptError) as info:
        encrypt_buf(b"x", PASSWORD, Params(log_n=64, r=1, p=1), force=True)
    assert info.value.code == ErrorCode.EPARAM


def test_explicit_rp_too_large():
    with pytest.raises(ScryptError) as info:
        encrypt_buf(b"x", PASSWORD, Params(log_n=4, r=1 << 15, p=1 << 15), force=True)
    assert info.value.code == ErrorCode.EPARAM


def test_mixed_explicit_params_rejected():
    with pytest.raises(ValueError):
        encrypt_buf(b"x", PASSWORD, Params(log_n=4, r=0, p=1), force=True)


def test_decrypt_requires_zero_params():
    blob = encrypt(b"x")
    with pytest.raises(ValueError):
        decrypt_buf(blob, PASSWORD, small_params(), force=True)


def test_automatic_params_round_trip():
    params = Params(maxmem=1048576, maxmemfrac=0.5, maxtime=0.001)
    blob = encrypt_buf(b"automatic", PASSWORD, params)
    assert params.log_n > 0 and params.r == 8 and params.p >= 1
    assert blob[7] == params.log_n
    assert decrypt_buf(blob, PASSWORD, force=True) == b"automatic"


def test_file_round_trip_multiple_blocks():
    data = bytes(range(256)) * 700
    encrypted = io.BytesIO()
    encrypt_file(io.BytesIO(data), encrypted, PASSWORD, small_params(), force=True)
    assert len(encrypted.getvalue()) == len(data) + 128

    decrypted = io.BytesIO()
    decrypt_file(io.BytesIO(encrypted.getvalue()), decrypted, PASSWORD, force=True)
    assert decrypted.getvalue() == data


def test_file_and_buffer_formats_agree():
    encrypted = io.BytesIO()
    encrypt_file(io.BytesIO(b"stream"), encrypted, PASSWORD, small_params(), force=True)
    assert decrypt_buf(encrypted.getvalue(), PASSWORD, force=True) == b"stream"

    out = io.BytesIO()
    decrypt_file(io.BytesIO(encrypt(b"buffer")), out, PASSWORD, force=True)
    assert out.getvalue() == b"buffer"


def test_file_truncated_signature():
    blob = encrypt(b"payload")
    with pytest.raises(ScryptError) as info:
        decrypt_file(io.BytesIO(blob[:110]), io.BytesIO(), PASSWORD, force=True)
    assert info.value.code == ErrorCode.EINVAL


def test_file_short_header():
    with pytest.raises(ScryptError) as info:
        decrypt_file(io.BytesIO(encrypt(b"x")[:50]), io.BytesIO(), PASSWORD, force=True)
    assert info.value.code == ErrorCode.EINVAL


def test_file_wrong_password():
    with pytest.raises(ScryptError) as info:
        prepare_decrypt(io.BytesIO(encrypt(b"x")), OTHER, force=True)
    assert info.value.code == ErrorCode.EPASS


def test_prepare_then_copy():
    prepared = prepare_decrypt(io.BytesIO(encrypt(b"prepared")), PASSWORD, force=True)
    assert isinstance(prepared, PreparedDecryption)
    out = io.BytesIO()
    with prepared:
        prepared.copy_to(out)
    assert out.getvalue() == b"prepared"
    with pytest.raises(ValueError):
        prepared.copy_to(io.BytesIO())


class _BrokenWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise OSError(28, "No space left on device")


class _BrokenReader(io.RawIOBase):
    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError(5, "Input/output error")


def test_write_error():
    with pytest.raises(ScryptError) as info:
        encrypt_file(io.BytesIO(b"x"), _BrokenWriter(), PASSWORD, small_params(), force=True)
    assert info.value.code == ErrorCode.EWRFILE


def test_read_error():
    with pytest.raises(ScryptError) as info:
        encrypt_file(_BrokenReader(), io.BytesIO(), PASSWORD, small_params(), force=True)
    assert info.value.code == ErrorCode.ERDFILE


def test_print_file_params(capsys):
    blob = encrypt_buf(b"x", PASSWORD, Params(log_n=6, r=2, p=3), force=True)
    found = print_file_params(io.BytesIO(blob))
    assert (found.log_n, found.r, found.p) == (6, 2, 3)
    err = capsys.readouterr().err
    assert "Parameters used: N = 64; r = 2; p = 3;" in err


def test_print_file_params_bad_magic():
    with pytest.raises(ScryptError) as info:
        print_file_params(io.BytesIO(b"garbage" * 20))
    assert info.value.code == ErrorCode.EINVAL