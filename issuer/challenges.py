from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

from crypto.hashing import constant_time_eq, random_handle
from issuer.did import normalize_did, parse_did
from issuer.errors import ChallengeNotFound
from issuer.kvstore import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

CHALLENGE_TTL = 300    # seconds
NONCE_BYTES = 32

class ChallengeStore:
    """
    Single-use nonces keyed by normalized did. One live challenge per did;
    any consume attempt deletes it whatever the outcome.
    """

    def __init__(
        self,
        backend: Optional[KeyValueStore] = None,
        ttl: int = CHALLENGE_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend if backend is not None else MemoryStore()
        self.ttl = ttl
        self.clock = clock
        self._lock = threading.Lock()

    def generate_challenge(self, did: str) -> Dict[str, object]:
        parse_did(did)
        key = normalize_did(did)
        nonce = random_handle(NONCE_BYTES)
        now = int(self.clock())

        with self._lock:
            self._purge_expired_locked(now)
            self.backend.put(key, {
                "did": key,
                "challenge": nonce,
                "issuedAt": now,
                "expiresAt": now + self.ttl,
            })

        logger.info("Challenge generated for DID: %s", key)
        return {"challenge": nonce, "expiresIn": self.ttl}

    def consume_challenge(self, did: str, nonce: str) -> None:
        key = normalize_did(did)
        with self._lock:
            entry = self.backend.delete(key)

        now = self.clock()
        if (
            entry is None
            or not isinstance(nonce, str)
            or entry["expiresAt"] <= now
            or not constant_time_eq(entry["challenge"].encode("utf-8"), nonce.encode("utf-8"))
        ):
            raise ChallengeNotFound()

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked(self.clock())

    def _purge_expired_locked(self, now: float) -> int:
        stale = [k for k, v in self.backend.items() if v["expiresAt"] <= now]
        for k in stale:
            self.backend.delete(k)
        return len(stale)
