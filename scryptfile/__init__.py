"""Password-based encryption in the scrypt file format, with the scrypt KDF."""

__version__ = "1.0.0"

__all__ = ["cpuperf", "errors", "kdf", "memlimit", "params", "scryptenc", "sha256"]