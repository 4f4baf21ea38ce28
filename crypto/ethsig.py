"""
EIP-191 personal_sign recovery over secp256k1.

A wallet signs keccak256("\\x19Ethereum Signed Message:\\n" + len(msg) + msg)
and returns 65 bytes r||s||v. The signer's account is the last 20 bytes of the
keccak256 of the recovered uncompressed public key.
"""
from typing import Tuple, Union

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError
from ecdsa.numbertheory import SquareRootError
from ecdsa.util import sigdecode_string

from crypto.encoding import hex_to_bytes
from crypto.hashing import keccak256

PERSONAL_PREFIX = b"\x19Ethereum Signed Message:\n"
SIGNATURE_LEN = 65
SECP256K1_N = SECP256k1.order

def hash_personal_message(message: Union[str, bytes]) -> bytes:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return keccak256(PERSONAL_PREFIX + str(len(message)).encode("ascii") + message)

def address_of(vk: VerifyingKey) -> str:
    """Lowercase 0x-address of a secp256k1 public key."""
    return "0x" + keccak256(vk.to_string())[-20:].hex()

def address_of_signing_key(sk: SigningKey) -> str:
    return address_of(sk.get_verifying_key())

def split_signature(signature: str) -> Tuple[bytes, int]:
    """Returns (r||s, recovery id). Raises ValueError on bad framing."""
    raw = hex_to_bytes(signature)
    if len(raw) != SIGNATURE_LEN:
        raise ValueError(f"signature must be {SIGNATURE_LEN} bytes")

    rs, v = raw[:64], raw[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        raise ValueError("bad recovery id")

    r = int.from_bytes(rs[:32], "big")
    s = int.from_bytes(rs[32:], "big")
    if not (0 < r < SECP256K1_N and 0 < s < SECP256K1_N):
        raise ValueError("r or s out of range")
    return rs, v

def recover_address(message: Union[str, bytes], signature: str) -> str:
    rs, recid = split_signature(signature)
    digest = hash_personal_message(message)
    try:
        # candidates come back ordered by R's y parity, which is the recovery id
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            rs, digest, curve=SECP256k1, sigdecode=sigdecode_string
        )
    except (SquareRootError, MalformedPointError, RuntimeError) as e:
        raise ValueError(f"unrecoverable signature: {e}") from e
    if recid >= len(candidates):
        raise ValueError("no key for recovery id")
    return address_of(candidates[recid])
