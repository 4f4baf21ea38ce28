import pytest

from crypto.keys import generate_issuer_seed
from issuer.config import Settings
from issuer.issuer_service import create_app
from wallet.keygen import signing_key_from_hex, wallet_did
from wallet.wallet_sign import personal_sign

# first default hardhat account
HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
ISSUER_DID = "did:pkh:eip155:1:0x" + "1" * 40
SESSION_SECRET = "test-session-secret-0123456789abcdef"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def issuer_seed():
    return generate_issuer_seed()


@pytest.fixture
def settings(tmp_path, issuer_seed):
    return Settings(
        issuer_did=ISSUER_DID,
        issuer_private_key=issuer_seed.hex(),
        session_secret=SESSION_SECRET,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def wallet_sk():
    return signing_key_from_hex(HARDHAT_KEY)


@pytest.fixture
def did(wallet_sk):
    return wallet_did(wallet_sk, 31337)


@pytest.fixture
def session_token(client, did, wallet_sk):
    challenge = client.get("/challenge", query_string={"did": did}).get_json()["challenge"]
    r = client.post("/verify-challenge", json={
        "did": did,
        "challenge": challenge,
        "signature": personal_sign(challenge, wallet_sk),
    })
    assert r.status_code == 200
    return r.get_json()["sessionToken"]


@pytest.fixture
def auth_header(session_token):
    return {"Authorization": f"Bearer {session_token}"}
