from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4
import logging
import time

from crypto.jws import encode_compact
from crypto.signing import ed25519_sign
from Crypto.PublicKey import ECC
from issuer.audit import IssuanceLog
from issuer.did import normalize_did
from issuer.errors import SubjectMismatch, ValidationFailed

logger = logging.getLogger(__name__)

MAX_VALIDITY_DAYS = 365
DEFAULT_VALIDITY_DAYS = 365
SECONDS_PER_DAY = 86400

CREDENTIAL_ALG = "EdDSA"
VC_CONTEXT = ["https://www.w3.org/2018/credentials/v1"]
VC_TYPE = ["VerifiableCredential", "DocumentCredential"]

SCALAR_TYPES = (str, int, float, bool, type(None))

def epoch_to_iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat().replace('+00:00', 'Z')

def check_claims(claims: Any) -> Dict[str, Any]:
    if not isinstance(claims, dict):
        raise ValidationFailed("credentialSubject must be an object")
    for k, v in claims.items():
        if not isinstance(k, str) or not isinstance(v, SCALAR_TYPES):
            raise ValidationFailed("credentialSubject must be a flat key-value object")
    return claims

def check_subject(session_did: str, subject_did: Any) -> str:
    if not isinstance(subject_did, str) or not subject_did:
        raise ValidationFailed()
    if normalize_did(subject_did) != normalize_did(session_did):
        raise SubjectMismatch()
    return normalize_did(subject_did)

def check_validity_days(days: Any) -> int:
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationFailed(f"validityDays must be an integer between 1 and {MAX_VALIDITY_DAYS}")
    if not 1 <= days <= MAX_VALIDITY_DAYS:
        raise ValidationFailed(f"validityDays must be between 1 and {MAX_VALIDITY_DAYS}")
    return days

@dataclass
class IssuedCredential:
    token: str
    jti: str
    issued_at: int
    expires_at: int
    payload: Dict[str, Any]

    @property
    def expires_at_iso(self) -> str:
        return epoch_to_iso(self.expires_at)

def make_credential(
    issuer_did: str,
    subject_did: str,
    claims: Dict[str, Any],
    issued_at: int,
    validity_days: int = DEFAULT_VALIDITY_DAYS,
    jti: Optional[str] = None,
) -> Dict[str, Any]:
    exp = issued_at + validity_days * SECONDS_PER_DAY
    return {
        "iss": issuer_did,
        "sub": subject_did,
        "iat": issued_at,
        "exp": exp,
        "jti": jti or str(uuid4()),
        "vc": {
            "@context": list(VC_CONTEXT),
            "type": list(VC_TYPE),
            "issuer": issuer_did,
            "issuanceDate": epoch_to_iso(issued_at),
            "expirationDate": epoch_to_iso(exp),
            # the subject id always wins over a caller-supplied "id"
            "credentialSubject": {**claims, "id": subject_did},
        },
    }

def sign_credential(payload: Dict[str, Any], issuer_sk: ECC.EccKey) -> str:
    header = {"alg": CREDENTIAL_ALG, "typ": "JWT"}
    return encode_compact(header, payload, lambda m: ed25519_sign(m, issuer_sk))

class CredentialIssuer:
    def __init__(
        self,
        issuer_did: str,
        issuer_sk: ECC.EccKey,
        default_validity_days: int = DEFAULT_VALIDITY_DAYS,
        clock: Callable[[], float] = time.time,
        audit_log: Optional[IssuanceLog] = None,
    ):
        self.issuer_did = issuer_did
        self.issuer_sk = issuer_sk
        self.default_validity_days = check_validity_days(default_validity_days)
        self.clock = clock
        self.audit_log = audit_log

    def issue(
        self,
        session_did: str,
        subject_did: str,
        claims: Dict[str, Any],
        validity_days: Optional[int] = None,
    ) -> IssuedCredential:
        subject = check_subject(session_did, subject_did)
        check_claims(claims)
        days = check_validity_days(self.default_validity_days if validity_days is None else validity_days)

        payload = make_credential(self.issuer_did, subject, claims, int(self.clock()), days)
        token = sign_credential(payload, self.issuer_sk)

        if self.audit_log is not None:
            self.audit_log.record(self.issuer_did, subject, payload["jti"], payload["vc"]["type"])
        logger.info("VC issued: %s for %s", payload["jti"], subject)

        return IssuedCredential(
            token=token,
            jti=payload["jti"],
            issued_at=payload["iat"],
            expires_at=payload["exp"],
            payload=payload,
        )

    @property
    def public_key(self) -> ECC.EccKey:
        return self.issuer_sk.public_key()
