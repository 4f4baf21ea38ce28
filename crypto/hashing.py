import hmac
import os

from Crypto.Hash import keccak

from crypto.encoding import b64url_encode

def keccak256(data: bytes) -> bytes:
    """Ethereum's Keccak-256 (pre-standard SHA3 padding)."""
    return keccak.new(digest_bits=256, data=data).digest()

def constant_time_eq(a: bytes, b: bytes) -> bool:
    return hmac.compare_digest(a, b)

def random_handle(n_bytes: int = 16) -> str:
    return b64url_encode(os.urandom(n_bytes))
