from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

import jwt

from crypto.jws import TokenFormatError, check_segments
from issuer.did import normalize_did
from issuer.errors import InvalidSessionToken, NoSessionToken

logger = logging.getLogger(__name__)

SESSION_TTL = 600    # seconds, non-renewable
SESSION_TYPE = "did-auth-session"
SESSION_ALG = "HS256"

def bearer_token(header: Optional[str]) -> Optional[str]:
    """Token from an "Authorization: Bearer <token>" value, or None."""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None

class SessionManager:
    """
    Stateless HS256 session tokens: the MAC over {sub, type, iat, exp} is the
    only thing that has to be checked, so nothing is kept server-side.

    Expiry is measured against self.clock rather than PyJWT's wall clock, so
    PyJWT's own exp/iat checks are switched off and done below.
    """

    def __init__(self, secret: str, ttl: int = SESSION_TTL, clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("session secret required")
        self._secret = secret
        self.ttl = ttl
        self.clock = clock

    def issue_session(self, did: str) -> Tuple[str, int]:
        now = int(self.clock())
        payload = {
            "sub": normalize_did(did),
            "type": SESSION_TYPE,
            "iat": now,
            "exp": now + self.ttl,
        }
        token = jwt.encode(payload, self._secret, algorithm=SESSION_ALG)
        return token, self.ttl

    def validate_session(self, token: Optional[str]) -> str:
        if not token:
            raise NoSessionToken()

        try:
            check_segments(token)
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[SESSION_ALG],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "type"]},
            )
        except (jwt.InvalidTokenError, TokenFormatError) as e:
            logger.warning("Rejected session token: %s", e)
            raise InvalidSessionToken() from e

        if payload.get("type") != SESSION_TYPE:
            raise InvalidSessionToken("Invalid token type")

        sub, exp = payload["sub"], payload["exp"]
        if not isinstance(sub, str) or not isinstance(exp, int) or isinstance(exp, bool):
            raise InvalidSessionToken()
        if self.clock() >= exp:
            raise InvalidSessionToken("Session expired. Please authenticate again.")
        return sub
