"""
Generate issuer configuration: an Ed25519 credential-signing seed, a session
secret and an issuer did:pkh. Writes .env.generated (and the key PEMs under
issuer_data/) and prints the result.

    python -m issuer.keygen [--chain-id 1] [--out .env.generated]
"""
from pathlib import Path
import argparse
import os

from ecdsa import SECP256k1, SigningKey

from crypto.ethsig import address_of_signing_key
from crypto.keys import DEFAULT_PK_PATH, DEFAULT_SK_PATH, generate_issuer_seed, write_issuer_keypair
from issuer.audit import utc_now_iso
from issuer.did import did_for_address
from issuer.issue import DEFAULT_VALIDITY_DAYS

def generate_env(chain_id: int = 1) -> dict:
    seed = generate_issuer_seed()
    account = SigningKey.generate(curve=SECP256k1)
    return {
        "ISSUER_PRIVATE_KEY": seed.hex(),
        "ISSUER_DID": did_for_address(address_of_signing_key(account), chain_id),
        "SESSION_SECRET": os.urandom(32).hex(),
        "VC_TOKEN_TTL": str(DEFAULT_VALIDITY_DAYS),
        "PORT": "8080",
    }

def render_env(values: dict) -> str:
    lines = [
        f"# Issuer Configuration (Generated: {utc_now_iso()})",
        "# Keep ISSUER_PRIVATE_KEY and SESSION_SECRET secret - never commit them.",
        "",
    ]
    lines += [f"{k}={v}" for k, v in values.items()]
    return "\n".join(lines) + "\n"

def main(argv=None):
    p = argparse.ArgumentParser(description="Generate issuer keys and .env configuration")
    p.add_argument("--chain-id", type=int, default=1)
    p.add_argument("--out", default=".env.generated")
    p.add_argument("--no-pem", action="store_true", help="skip writing issuer_data/*.pem")
    args = p.parse_args(argv)

    if Path(".env").exists():
        print("Warning: .env already exists; writing a new keypair anyway.")

    values = generate_env(args.chain_id)
    env_text = render_env(values)
    Path(args.out).write_text(env_text, encoding="utf-8")

    if not args.no_pem:
        write_issuer_keypair(bytes.fromhex(values["ISSUER_PRIVATE_KEY"]), DEFAULT_SK_PATH, DEFAULT_PK_PATH)
        print("Issuer keypair written to", DEFAULT_SK_PATH.parent)

    print(env_text)
    print("Configuration saved to", args.out)
    print("Next: cp", args.out, ".env && python -m issuer.issuer_service")

if __name__ == "__main__":
    main()
