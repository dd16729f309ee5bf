# scryptfile

Encrypt and decrypt data with a key derived from a passphrase through the
scrypt key derivation function. The output is the scrypt file format:

- a 96-byte header: the magic `scrypt`, format version 0, log2(N), r and p,
  a 32-byte random salt, a 16-byte SHA-256 checksum of the first 48 bytes,
  and a 32-byte HMAC-SHA256 signature of the first 64 bytes, which is what
  verifies the passphrase;
- the data, encrypted with AES-256 in CTR mode (counter starting at zero);
- a closing HMAC-SHA256 over everything before it.

The encryption key and the HMAC key are the two halves of a 64-byte scrypt
output. The output is always 128 bytes longer than the input.

## Modules

- `scryptfile.sha256` – `sha256`, `hmac_sha256`, `pbkdf2_sha256` and the
  incremental `HmacSha256` context (`update`, which returns the context for
  chaining, `digest` and `copy`).
- `scryptfile.kdf` – `scrypt(passwd, salt, n, r, p, buflen)` together with
  its parts `salsa20_8`, `blockmix_salsa8` and `smix`.
- `scryptfile.cpuperf` – `cpuperf()` estimates how many salsa20/8 cores this
  machine runs per second.
- `scryptfile.memlimit` – `memtouse(maxmem, maxmemfrac)` works out how much
  memory key derivation may use.
- `scryptfile.params` – `Params`, `pick_params`, `check_params` and
  `display_params`.
- `scryptfile.scryptenc` – `encrypt_buf`, `decrypt_buf`, `encrypt_file`,
  `decrypt_file`, `prepare_decrypt` (returning a `PreparedDecryption`) and
  `print_file_params`.
- `scryptfile.errors` – `ErrorCode`, `ScryptError`, `error_message` and
  `print_error`.

## Deriving a key

```python
from scryptfile.kdf import scrypt

passwd = b"password"
key = scrypt(passwd, b"NaCl", 1024, 8, 16, 64)
# key.hex() starts with "fdbabe1c9d347200"
```

`n` must be a power of two greater than 1, `r` and `p` must be positive with
`r * p` below 2**30, and `buflen` at most (2**32 - 1) * 32. Bad parameters
raise `ValueError`; parameters that would need more memory than can be
addressed raise `MemoryError`.

## Encrypting and decrypting

```python
from scryptfile.params import Params
from scryptfile.scryptenc import decrypt_buf, encrypt_buf

passwd = b"password"
params = Params(maxtime=1.0)
blob = encrypt_buf(b"hello", passwd, params)
print(params.log_n, params.r, params.p)   # the values that were chosen

plain = decrypt_buf(blob, passwd)
```

A passphrase may be `bytes` or `str` (a `str` is encoded as UTF-8).

`Params` holds the resource limits and, optionally, explicit cost
parameters:

- `maxmem` – largest number of bytes to use; 0 (the default) means no
  maximum.
- `maxmemfrac` – largest fraction of available memory to use (default 0.5).
- `maxtime` – approximate CPU time budget in seconds (default 5.0).
- `log_n`, `r`, `p` – all zero (the default) to have them chosen, or all
  non-zero to use them as given. `n` gives 2**`log_n`.

When encrypting with zero `log_n`, `r`, `p`, the parameters are picked to
make the key as strong as the limits allow: `r` is fixed at 8, N is chosen
from the memory or CPU limit (whichever binds), and `p` from the remaining
CPU budget. The chosen values are written back into the `Params` you pass.
Explicit values that would exceed the limits only print a warning; invalid
explicit values raise `ScryptError` with `ErrorCode.EPARAM`. Mixing zero and
non-zero explicit values raises `ValueError`.

When decrypting, `log_n`, `r` and `p` must be zero (otherwise `ValueError`);
the values found in the header are written back into the `Params`. Unless
`force` is set, decryption first checks that the file's parameters fit in
the memory and time limits and raises `ScryptError` with `ETOOBIG`,
`ETOOSLOW` or `EBIGSLOW` if not. With `verbose` set, the parameters and
their estimated memory and time cost are reported on standard error.

Available memory is taken as the least of the process's address-space and
resident-set limits and the physical memory size, times `maxmemfrac`,
capped by `maxmem`, and never less than 1 MiB. CPU speed is measured with
`cpuperf()` each time limits are checked or parameters picked.

### Streams

`encrypt_file(infile, outfile, passwd, params, verbose, force)` and
`decrypt_file(infile, outfile, passwd, params, verbose, force)` work on
binary file objects and read the input in 64 KiB blocks.

`prepare_decrypt(infile, passwd, ...)` reads the header and checks the
passphrase before any output is written, so a caller can, for example, open
the output file only once the passphrase is known to be right. The returned
`PreparedDecryption` is a context manager; `copy_to(outfile)` decrypts the
rest of the input and verifies the closing signature, and leaving the
`with` block (or calling `close()`) wipes the derived key.

```python
from scryptfile.scryptenc import prepare_decrypt

passwd = b"password"
with open("data.enc", "rb") as infile:
    with prepare_decrypt(infile, passwd) as prepared:
        with open("data", "wb") as outfile:
            prepared.copy_to(outfile)
```

Note that `copy_to` writes decrypted data as it goes; if the closing
signature turns out to be wrong, `ScryptError` with `EINVAL` is raised after
the output has been written.

`print_file_params(infile)` prints the N, r and p recorded in an encrypted
file and the memory needed to decrypt it, and returns them as a `Params`.

## Errors

Failures raise `ScryptError`, whose `code` is an `ErrorCode` and whose
optional `detail` holds the underlying system error text. Codes include an
invalid or corrupted input (`EINVAL`), an unknown format version
(`EVERSION`), a wrong passphrase (`EPASS`), parameters that would need too
much memory (`ETOOBIG`), too much CPU time (`ETOOSLOW`) or both
(`EBIGSLOW`), invalid explicit parameters (`EPARAM`), and read or write
errors (`ERDFILE`, `EWRFILE`).

`error_message(code, infilename, outfilename)` returns the text shown to a
user, naming the input or output file for read and write errors
("standard input" and "standard output" when no name is given).
`print_error` accepts a code or a `ScryptError` and writes that text,
prefixed with the program name, to standard error.

## What this package does not do

There is no command-line program: the package is a library only. It does
not read passphrases from a terminal, an environment variable or a file;
the caller supplies the passphrase.