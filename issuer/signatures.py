import logging

from crypto.ethsig import recover_address
from issuer.did import parse_did
from issuer.errors import InvalidFormat, SignatureInvalid

logger = logging.getLogger(__name__)

class SignatureVerifier:
    """Checks that a personal_sign signature was made by the did's account."""

    def recover(self, message: str, signature: str) -> str:
        if not isinstance(signature, str) or not isinstance(message, str):
            raise SignatureInvalid()
        try:
            return recover_address(message, signature)
        except ValueError as e:
            logger.info("Signature rejected: %s", e)
            raise SignatureInvalid() from e

    def verify(self, did: str, message: str, signature: str) -> str:
        try:
            expected = parse_did(did).address
        except InvalidFormat as e:
            raise SignatureInvalid() from e

        recovered = self.recover(message, signature)
        if recovered.lower() != expected:
            logger.info("Signature address mismatch for %s", did)
            raise SignatureInvalid("Signature verification failed. Address mismatch.")
        return recovered
