import hashlib
from typing import Union

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_string, sigencode_string

from crypto.ethsig import hash_personal_message

def personal_sign(message: Union[str, bytes], sk: SigningKey) -> str:
    """
    EIP-191 personal_sign, as a browser wallet would produce it:
    0x + r||s||v with v in {27, 28}.
    """
    digest = hash_personal_message(message)
    rs = sk.sign_digest_deterministic(digest, hashfunc=hashlib.sha256, sigencode=sigencode_string)

    own = sk.get_verifying_key().to_string()
    candidates = VerifyingKey.from_public_key_recovery_with_digest(
        rs, digest, curve=SECP256k1, sigdecode=sigdecode_string
    )
    recid = next(i for i, vk in enumerate(candidates) if vk.to_string() == own)
    return "0x" + (rs + bytes([27 + recid])).hex()
