import threading

import pytest

from conftest import FakeClock
from issuer.challenges import CHALLENGE_TTL, ChallengeStore
from issuer.errors import ChallengeNotFound, InvalidFormat
from issuer.kvstore import JsonFileStore, MemoryStore

DID = "did:pkh:eip155:31337:0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def store(clock):
    return ChallengeStore(MemoryStore(), clock=clock)


def test_two_requests_give_two_nonces(store):
    first = store.generate_challenge(DID)
    second = store.generate_challenge(DID)
    assert first["challenge"] != second["challenge"]
    assert first["expiresIn"] == second["expiresIn"] == 300


def test_reissue_overwrites_previous_nonce(store):
    old = store.generate_challenge(DID)["challenge"]
    store.generate_challenge(DID)
    with pytest.raises(ChallengeNotFound):
        store.consume_challenge(DID, old)


def test_consume_is_single_use(store):
    nonce = store.generate_challenge(DID)["challenge"]
    store.consume_challenge(DID, nonce)
    with pytest.raises(ChallengeNotFound):
        store.consume_challenge(DID, nonce)


def test_wrong_nonce_still_burns_the_challenge(store):
    nonce = store.generate_challenge(DID)["challenge"]
    with pytest.raises(ChallengeNotFound):
        store.consume_challenge(DID, "not-the-nonce")
    with pytest.raises(ChallengeNotFound):
        store.consume_challenge(DID, nonce)


def test_expired_challenge_is_absent(store, clock):
    nonce = store.generate_challenge(DID)["challenge"]
    clock.advance(CHALLENGE_TTL)
    with pytest.raises(ChallengeNotFound):
        store.consume_challenge(DID, nonce)


def test_just_before_expiry_is_accepted(store, clock):
    nonce = store.generate_challenge(DID)["challenge"]
    clock.advance(CHALLENGE_TTL - 1)
    store.consume_challenge(DID, nonce)


def test_failure_kinds_are_indistinguishable(store, clock):
    errors = []

    with pytest.raises(ChallengeNotFound) as never:
        store.consume_challenge(DID, "x")
    errors.append(str(never.value))

    store.generate_challenge(DID)
    with pytest.raises(ChallengeNotFound) as wrong:
        store.consume_challenge(DID, "x")
    errors.append(str(wrong.value))

    nonce = store.generate_challenge(DID)["challenge"]
    clock.advance(CHALLENGE_TTL + 1)
    with pytest.raises(ChallengeNotFound) as expired:
        store.consume_challenge(DID, nonce)
    errors.append(str(expired.value))

    assert len(set(errors)) == 1


def test_address_case_does_not_matter(store):
    nonce = store.generate_challenge(DID)["challenge"]
    store.consume_challenge(DID.lower(), nonce)


@pytest.mark.parametrize("bad", [
    "",
    "invalid-did",
    "did:pkh:eip155:1:0x123",
    "did:ethr:0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
    None,
])
def test_malformed_identifier_never_reaches_the_store(bad):
    backend = MemoryStore()
    store = ChallengeStore(backend)
    with pytest.raises(InvalidFormat):
        store.generate_challenge(bad)
    assert len(backend) == 0


def test_purge_expired(store, clock):
    store.generate_challenge(DID)
    clock.advance(CHALLENGE_TTL + 1)
    assert store.purge_expired() == 1
    assert len(store.backend) == 0


def test_file_backend_survives_a_new_store(tmp_path):
    path = tmp_path / "challenges.json"
    clock = FakeClock()
    nonce = ChallengeStore(JsonFileStore(path), clock=clock).generate_challenge(DID)["challenge"]

    reopened = ChallengeStore(JsonFileStore(path), clock=clock)
    reopened.consume_challenge(DID, nonce)
    assert len(JsonFileStore(path)) == 0


def test_concurrent_consumers_succeed_at_most_once(store):
    nonce = store.generate_challenge(DID)["challenge"]
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            store.consume_challenge(DID, nonce)
            results.append(True)
        except ChallengeNotFound:
            results.append(False)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
