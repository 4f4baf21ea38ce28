from pathlib import Path
from typing import Tuple

from Crypto.PublicKey import ECC
from Crypto.Random import get_random_bytes

from crypto.encoding import hex_to_bytes

DEFAULT_KEY_DIR = Path("issuer_data")
DEFAULT_SK_PATH = DEFAULT_KEY_DIR / "issuer_sk.pem"
DEFAULT_PK_PATH = DEFAULT_KEY_DIR / "issuer_pk.pem"

ED25519_SEED_LEN = 32

def generate_issuer_seed() -> bytes:
    return get_random_bytes(ED25519_SEED_LEN)

def issuer_key_from_seed(seed: bytes) -> ECC.EccKey:
    if len(seed) != ED25519_SEED_LEN:
        raise ValueError("Ed25519 seed must be 32 bytes")
    return ECC.construct(curve='Ed25519', seed=seed)

def load_issuer_sk(value: str) -> ECC.EccKey:
    """
    Accepts either a PEM private key or a hex-encoded 32-byte seed
    (optionally 0x-prefixed), which is what ISSUER_PRIVATE_KEY holds.
    """
    value = value.strip()
    if value.startswith("-----BEGIN"):
        key = ECC.import_key(value)
    else:
        key = issuer_key_from_seed(hex_to_bytes(value))

    if key.curve != 'Ed25519' or not key.has_private():
        raise ValueError("issuer key must be an Ed25519 private key")
    return key

def load_issuer_pk(pem: str) -> ECC.EccKey:
    key = ECC.import_key(pem)
    if key.curve != 'Ed25519':
        raise ValueError("issuer public key must be Ed25519")
    return key.public_key()

def export_public_pem(key: ECC.EccKey) -> str:
    return key.public_key().export_key(format='PEM')

def write_issuer_keypair(seed: bytes, sk_path=DEFAULT_SK_PATH, pk_path=DEFAULT_PK_PATH) -> Tuple[Path, Path]:
    sk_path.parent.mkdir(parents=True, exist_ok=True)

    sk = issuer_key_from_seed(seed)
    pk = sk.public_key()

    sk_path.write_text(sk.export_key(format='PEM'), encoding='utf-8')
    pk_path.write_text(pk.export_key(format='PEM'), encoding='utf-8')
    return sk_path, pk_path
