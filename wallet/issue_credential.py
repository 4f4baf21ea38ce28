from pathlib import Path
from typing import Any, Dict, Optional
import argparse

import requests
from ecdsa import SigningKey

from wallet.keygen import DEFAULT_CHAIN_ID, SK_PATH, generate_wallet, wallet_did
from wallet.storage import CRED_PATH, save_credential_bundle
from wallet.wallet_sign import personal_sign

ISSUER_URL = "http://127.0.0.1:8080"

class IssuerRequestError(Exception):
    def __init__(self, status: int, error: str):
        super().__init__(f"{status}: {error}")
        self.status = status
        self.error = error

class IssuerClient:
    def __init__(self, base_url: str = ISSUER_URL, http=None, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _unwrap(self, r) -> Dict[str, Any]:
        try:
            body = r.json()
        except ValueError as e:
            raise IssuerRequestError(r.status_code, r.text[:200]) from e
        if r.status_code != 200 or not body.get("success"):
            raise IssuerRequestError(r.status_code, body.get("error", "unknown error"))
        return body

    def get(self, path: str, **params) -> Dict[str, Any]:
        r = self.http.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        return self._unwrap(r)

    def post(self, path: str, payload: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        r = self.http.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
        return self._unwrap(r)

    def challenge(self, did: str) -> str:
        return self.get("/challenge", did=did)["challenge"]

    def verify_challenge(self, did: str, challenge: str, signature: str) -> str:
        body = self.post("/verify-challenge", {"did": did, "challenge": challenge, "signature": signature})
        return body["sessionToken"]

    def issue_vc(self, token: str, subject_did: str, claims: Dict[str, Any], validity_days: Optional[int] = None) -> Dict[str, Any]:
        payload = {"subjectDid": subject_did, "credentialSubject": claims}
        if validity_days is not None:
            payload["validityDays"] = validity_days
        return self.post("/issue-vc", payload, token=token)

    def verify_vc(self, jwt: str) -> Dict[str, Any]:
        return self.get("/verify-vc", jwt=jwt)

    def public_key(self) -> Dict[str, Any]:
        return self.get("/public-key")

def authenticate(client: IssuerClient, sk: SigningKey, did: str) -> str:
    """challenge -> personal_sign -> session token"""
    challenge = client.challenge(did)
    return client.verify_challenge(did, challenge, personal_sign(challenge, sk))

def issue(claims: Dict[str, Any], validity_days: Optional[int] = None, chain_id: int = DEFAULT_CHAIN_ID,
          client: Optional[IssuerClient] = None, sk_path: Path = SK_PATH, bundle_path: Path = CRED_PATH) -> Dict[str, Any]:
    client = client or IssuerClient()
    sk = generate_wallet(sk_path)
    did = wallet_did(sk, chain_id)

    token = authenticate(client, sk, did)
    issued = client.issue_vc(token, did, claims, validity_days)

    bundle = {
        "did": did,
        "jwtVc": issued["jwtVc"],
        "jti": issued["jti"],
        "expiresAt": issued["expiresAt"],
    }
    path = save_credential_bundle(bundle, bundle_path)
    print("Credential saved to", path)
    return bundle

if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--issuer", default=ISSUER_URL)
    p.add_argument("--name", default="Test Document")
    p.add_argument("--claim", action="append", default=[], help="extra claim as key=value")
    p.add_argument("--validity_days", type=int, default=None)
    p.add_argument("--chain_id", type=int, default=DEFAULT_CHAIN_ID)
    args = p.parse_args()

    claims = {"name": args.name}
    for item in args.claim:
        k, _, v = item.partition("=")
        claims[k] = v
    issue(claims, args.validity_days, args.chain_id, IssuerClient(args.issuer))
