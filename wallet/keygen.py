from pathlib import Path

from ecdsa import SECP256k1, SigningKey

from crypto.encoding import hex_to_bytes
from crypto.ethsig import address_of_signing_key
from issuer.did import did_for_address

WALLET_DIR = Path("wallet_data")
SK_PATH = WALLET_DIR / "wallet_sk.hex"

DEFAULT_CHAIN_ID = 31337    # local hardhat/anvil chain

def signing_key_from_hex(private_key_hex: str) -> SigningKey:
    return SigningKey.from_string(hex_to_bytes(private_key_hex), curve=SECP256k1)

def generate_wallet(sk_path: Path = SK_PATH, overwrite: bool = False) -> SigningKey:
    sk_path.parent.mkdir(parents=True, exist_ok=True)
    if sk_path.exists() and not overwrite:
        return load_wallet_sk(sk_path)

    sk = SigningKey.generate(curve=SECP256k1)
    sk_path.write_text("0x" + sk.to_string().hex(), encoding="utf-8")
    return sk

def load_wallet_sk(sk_path: Path = SK_PATH) -> SigningKey:
    if not sk_path.exists():
        raise FileNotFoundError("wallet key missing. Run python3 -m wallet.keygen")
    return signing_key_from_hex(sk_path.read_text(encoding="utf-8").strip())

def wallet_did(sk: SigningKey, chain_id: int = DEFAULT_CHAIN_ID) -> str:
    return did_for_address(address_of_signing_key(sk), chain_id)

if __name__ == "__main__":
    sk = generate_wallet()
    print("Wallet ready.")
    print("address:", address_of_signing_key(sk))
    print("did:", wallet_did(sk))
