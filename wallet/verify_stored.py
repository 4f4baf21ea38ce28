import argparse

from crypto.keys import load_issuer_pk
from issuer.verify_issued import CredentialVerifier, VerificationResult
from wallet.issue_credential import ISSUER_URL, IssuerClient
from wallet.storage import load_credential_bundle

def verify_offline(jwt: str, public_key_pem: str) -> VerificationResult:
    """Verify with nothing but the issuer's public key."""
    return CredentialVerifier(load_issuer_pk(public_key_pem)).verify(jwt)

def main(issuer_url: str = ISSUER_URL):
    bundle = load_credential_bundle()
    pem = IssuerClient(issuer_url).public_key()["publicKeyPem"]
    result = verify_offline(bundle["jwtVc"], pem)
    print("Stored credential signature valid:", result.valid)
    print("Expired:", result.expired)
    print("jti:", result.payload.get("jti"))

if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--issuer", default=ISSUER_URL)
    args = p.parse_args()
    main(args.issuer)
