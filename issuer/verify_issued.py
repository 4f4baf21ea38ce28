from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict
import logging
import time

from crypto.jws import TokenFormatError, decode_compact
from crypto.signing import ed25519_verify
from Crypto.PublicKey import ECC
from issuer.errors import MalformedToken, SignatureInvalid
from issuer.issue import CREDENTIAL_ALG

logger = logging.getLogger(__name__)

@dataclass
class VerificationResult:
    valid: bool
    expired: bool
    payload: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "expired": self.expired, "payload": self.payload}

class CredentialVerifier:
    """
    Pure read over a credential token: only the issuer public key is needed,
    no session or store. Signature validity and expiry are reported apart.
    """

    def __init__(self, issuer_pk: ECC.EccKey, clock: Callable[[], float] = time.time):
        self.issuer_pk = issuer_pk
        self.clock = clock

    def verify(self, token: str) -> VerificationResult:
        if not isinstance(token, str):
            raise MalformedToken()
        try:
            parsed = decode_compact(token)
        except TokenFormatError as e:
            raise MalformedToken() from e

        exp = parsed.payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int):
            raise MalformedToken()

        valid = parsed.alg == CREDENTIAL_ALG and ed25519_verify(
            parsed.signing_input, parsed.signature, self.issuer_pk
        )
        if not valid:
            logger.info("Credential signature rejected (alg=%s)", parsed.alg)

        return VerificationResult(valid=valid, expired=exp < self.clock(), payload=parsed.payload)

    def require_valid(self, token: str) -> VerificationResult:
        result = self.verify(token)
        if not result.valid:
            raise SignatureInvalid()
        return result
