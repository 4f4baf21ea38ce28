import json
import string

import jwt
import pytest

from crypto.encoding import b64url_decode, b64url_encode, canonicalize
from crypto.keys import generate_issuer_seed, issuer_key_from_seed
from issuer.audit import IssuanceLog
from issuer.errors import MalformedToken, SignatureInvalid, SubjectMismatch, ValidationFailed
from issuer.issue import MAX_VALIDITY_DAYS, SECONDS_PER_DAY, CredentialIssuer
from issuer.verify_issued import CredentialVerifier

ISSUER = "did:pkh:eip155:1:0x" + "1" * 40
SUBJECT = "did:pkh:eip155:31337:0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"


@pytest.fixture
def issuer_sk(issuer_seed):
    return issuer_key_from_seed(issuer_seed)


@pytest.fixture
def audit_log(tmp_path):
    return IssuanceLog(tmp_path / "logs")


@pytest.fixture
def issuer(issuer_sk, clock, audit_log):
    return CredentialIssuer(ISSUER, issuer_sk, clock=clock, audit_log=audit_log)


@pytest.fixture
def verifier(issuer_sk, clock):
    return CredentialVerifier(issuer_sk.public_key(), clock=clock)


def test_issue_then_verify(issuer, verifier):
    issued = issuer.issue(SUBJECT, SUBJECT, {"name": "Test Document"}, 30)
    result = verifier.verify(issued.token)

    assert result.valid is True
    assert result.expired is False
    assert result.payload["iss"] == ISSUER
    assert result.payload["sub"] == SUBJECT
    assert result.payload["jti"] == issued.jti
    assert result.payload["vc"]["credentialSubject"] == {"name": "Test Document", "id": SUBJECT}


def test_validity_window(issuer):
    issued = issuer.issue(SUBJECT, SUBJECT, {}, 30)
    assert issued.payload["exp"] - issued.payload["iat"] == 30 * SECONDS_PER_DAY
    assert issued.expires_at == issued.payload["exp"]
    assert issued.expires_at_iso.endswith("Z")


def test_default_validity(issuer):
    issued = issuer.issue(SUBJECT, SUBJECT, {})
    assert issued.expires_at - issued.issued_at == 365 * SECONDS_PER_DAY


def test_header_names_eddsa(issuer):
    header = json.loads(b64url_decode(issuer.issue(SUBJECT, SUBJECT, {}).token.split(".")[0]))
    assert header == {"alg": "EdDSA", "typ": "JWT"}


def test_vc_envelope(issuer):
    vc = issuer.issue(SUBJECT, SUBJECT, {"k": 1}).payload["vc"]
    assert "https://www.w3.org/2018/credentials/v1" in vc["@context"]
    assert "VerifiableCredential" in vc["type"]
    assert vc["issuer"] == ISSUER
    assert vc["issuanceDate"] < vc["expirationDate"]


def test_jti_is_unique(issuer):
    assert issuer.issue(SUBJECT, SUBJECT, {}).jti != issuer.issue(SUBJECT, SUBJECT, {}).jti


def test_subject_mismatch_wins_over_bad_input(issuer):
    other = "did:pkh:eip155:1:0x" + "0" * 40
    with pytest.raises(SubjectMismatch):
        issuer.issue(SUBJECT, other, "not-a-dict", 5000)


@pytest.mark.parametrize("subject", [None, "", 7])
def test_malformed_subject_is_not_a_mismatch(issuer, subject):
    with pytest.raises(ValidationFailed) as e:
        issuer.issue(SUBJECT, subject, {})
    assert not isinstance(e.value, SubjectMismatch)


def test_subject_match_ignores_address_case(issuer):
    issued = issuer.issue(SUBJECT, SUBJECT.replace("0xf39fd6", "0xF39FD6"), {})
    assert issued.payload["sub"] == SUBJECT


@pytest.mark.parametrize("days", [0, -1, MAX_VALIDITY_DAYS + 1, 5000, "30", 1.5, True])
def test_out_of_range_validity_is_rejected(issuer, days):
    with pytest.raises(ValidationFailed):
        issuer.issue(SUBJECT, SUBJECT, {}, days)


@pytest.mark.parametrize("days", [1, 30, MAX_VALIDITY_DAYS])
def test_in_range_validity_is_accepted(issuer, days):
    issuer.issue(SUBJECT, SUBJECT, {}, days)


@pytest.mark.parametrize("claims", ["invalid-format", ["a"], {"nested": {"x": 1}}, {"list": [1, 2]}, None])
def test_claims_must_be_flat(issuer, claims):
    with pytest.raises(ValidationFailed):
        issuer.issue(SUBJECT, SUBJECT, claims)


def test_caller_cannot_override_subject_id(issuer):
    issued = issuer.issue(SUBJECT, SUBJECT, {"id": "did:pkh:eip155:1:0x" + "2" * 40})
    assert issued.payload["vc"]["credentialSubject"]["id"] == SUBJECT


def test_issuance_is_audited_without_claims(issuer, audit_log):
    issued = issuer.issue(SUBJECT, SUBJECT, {"name": "secret name"})
    entries = audit_log.entries()
    assert len(entries) == 1
    assert entries[0]["jti"] == issued.jti
    assert entries[0]["subject"] == SUBJECT
    assert entries[0]["action"] == "VC_ISSUED"
    assert "secret name" not in audit_log.path.read_text()


def test_expired_credential_is_valid_and_expired(issuer, verifier, clock):
    issued = issuer.issue(SUBJECT, SUBJECT, {}, 1)
    clock.advance(SECONDS_PER_DAY + 1)
    result = verifier.verify(issued.token)
    assert result.valid is True
    assert result.expired is True


def test_every_segment_is_tamper_evident(issuer, verifier):
    token = issuer.issue(SUBJECT, SUBJECT, {"name": "Test Document"}).token
    h, p, s = token.split(".")

    sig = bytearray(b64url_decode(s))
    sig[10] ^= 0x01
    assert verifier.verify(".".join([h, p, b64url_encode(bytes(sig))])).valid is False

    payload = b64url_decode(p).replace(b"Test Document", b"Test Documenu")
    assert verifier.verify(".".join([h, b64url_encode(payload), s])).valid is False

    # re-encodings of the same bytes are different tokens and must not verify
    last = ALPHABET[ALPHABET.index(s[-1]) ^ 0x01]
    for altered in (s[:-1] + last, s + "$$$$", s[:10] + "!!!!" + s[10:]):
        with pytest.raises(MalformedToken):
            verifier.verify(".".join([h, p, altered]))
    with pytest.raises(MalformedToken):
        verifier.verify(".".join([h, p + "=", s]))


def test_other_issuer_key_fails(issuer, clock):
    token = issuer.issue(SUBJECT, SUBJECT, {}).token
    stranger = issuer_key_from_seed(generate_issuer_seed()).public_key()
    assert CredentialVerifier(stranger, clock=clock).verify(token).valid is False


def test_alg_confusion_is_not_accepted(issuer, verifier, clock):
    payload = issuer.issue(SUBJECT, SUBJECT, {}).payload
    forged = jwt.encode(payload, "guess", algorithm="HS256")
    assert verifier.verify(forged).valid is False

    h = b64url_encode(canonicalize({"alg": "none"}))
    p = b64url_encode(canonicalize(payload))
    assert verifier.verify(f"{h}.{p}.AA").valid is False


@pytest.mark.parametrize("token", ["no-dots-here", "one.dot", "a..c", "..", "invalid.jwt.format", 123])
def test_malformed_tokens(verifier, token):
    with pytest.raises(MalformedToken):
        verifier.verify(token)


def test_missing_exp_is_malformed(verifier):
    h = b64url_encode(canonicalize({"alg": "EdDSA"}))
    p = b64url_encode(canonicalize({"sub": SUBJECT}))
    with pytest.raises(MalformedToken):
        verifier.verify(f"{h}.{p}.AA")


def test_require_valid(issuer, verifier):
    token = issuer.issue(SUBJECT, SUBJECT, {}).token
    assert verifier.require_valid(token).valid
    h, p, s = token.split(".")
    with pytest.raises(SignatureInvalid):
        verifier.require_valid(f"{h}.{p}.{s[::-1]}")
