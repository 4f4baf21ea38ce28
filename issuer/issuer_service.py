import logging
import sys
import time
from typing import Callable, Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from crypto.keys import export_public_pem, load_issuer_sk
from issuer.audit import IssuanceLog, utc_now_iso
from issuer.challenges import ChallengeStore
from issuer.config import Settings, configure_logging, load_settings
from issuer.errors import ConfigError, IssuerError, MalformedToken, NotFound, ValidationFailed
from issuer.issue import CREDENTIAL_ALG, CredentialIssuer, check_subject
from issuer.kvstore import JsonFileStore, KeyValueStore, MemoryStore
from issuer.schemas import ISSUE_VC_BODY, VERIFY_CHALLENGE_BODY, validate, validate_challenge_query
from issuer.sessions import SessionManager, bearer_token
from issuer.signatures import SignatureVerifier
from issuer.verify_issued import CredentialVerifier

logger = logging.getLogger(__name__)

SERVICE_NAME = "issuer"
SERVICE_VERSION = "1.0.0"

bp = Blueprint("issuer", __name__)

class IssuerServices:
    """Everything a request handler needs, built once at startup."""

    def __init__(self, settings: Settings, backend: Optional[KeyValueStore] = None, clock: Callable[[], float] = time.time):
        self.settings = settings
        issuer_sk = load_issuer_sk(settings.issuer_private_key)

        if backend is None:
            if settings.challenge_store == "file":
                backend = JsonFileStore(settings.challenge_store_path)
            else:
                backend = MemoryStore()

        self.challenges = ChallengeStore(backend, clock=clock)
        self.signatures = SignatureVerifier()
        self.sessions = SessionManager(settings.session_secret, clock=clock)
        self.issuer = CredentialIssuer(
            settings.issuer_did,
            issuer_sk,
            default_validity_days=settings.vc_validity_days,
            clock=clock,
            audit_log=IssuanceLog(settings.log_dir),
        )
        self.verifier = CredentialVerifier(issuer_sk.public_key(), clock=clock)

def services() -> IssuerServices:
    return current_app.extensions["issuer"]

def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed()
    return data

@bp.get("/challenge")
def challenge():
    did = validate_challenge_query(request.args.to_dict())
    issued = services().challenges.generate_challenge(did)
    return jsonify({"success": True, **issued}), 200

@bp.post("/verify-challenge")
def verify_challenge():
    """
    Request JSON:
    {
        "did": "did:pkh:eip155:<chain>:0x...",
        "challenge": "<nonce from /challenge>",
        "signature": "0x<65 bytes hex>"
    }
    """
    data = validate(json_body(), VERIFY_CHALLENGE_BODY)
    svc = services()

    # consumed before the signature check so a failed attempt burns the nonce
    svc.challenges.consume_challenge(data["did"], data["challenge"])
    svc.signatures.verify(data["did"], data["challenge"], data["signature"])

    token, expires_in = svc.sessions.issue_session(data["did"])
    logger.info("DID-Auth successful for: %s", data["did"])
    return jsonify({
        "success": True,
        "sessionToken": token,
        "expiresIn": expires_in,
        "message": "Authentication successful",
    }), 200

@bp.post("/issue-vc")
def issue_vc():
    """
    Header: Authorization: Bearer <sessionToken>
    Request JSON:
    {
        "subjectDid": "did:pkh:...",
        "credentialSubject": {...flat claims...},
        "validityDays": int (optional)
    }
    """
    svc = services()
    session_did = svc.sessions.validate_session(bearer_token(request.headers.get("Authorization")))

    data = json_body()
    subject_did = data.get("subjectDid")
    validity_days = data.get("validityDays")
    if isinstance(validity_days, float) and validity_days.is_integer():
        validity_days = int(validity_days)

    # a well-typed subject is bound to the session before the rest of the body is checked
    check_subject(session_did, subject_did)

    validate(data, ISSUE_VC_BODY)
    issued = svc.issuer.issue(session_did, subject_did, data["credentialSubject"], validity_days)

    return jsonify({
        "success": True,
        "jwtVc": issued.token,
        "jti": issued.jti,
        "expiresAt": issued.expires_at_iso,
    }), 200

@bp.get("/verify-vc")
def verify_vc():
    token = request.args.get("jwt")
    if not token:
        raise ValidationFailed("JWT parameter required")

    result = services().verifier.verify(token)
    return jsonify({"success": True, **result.to_dict()}), 200

@bp.get("/public-key")
def public_key():
    svc = services()
    return jsonify({
        "success": True,
        "issuer": svc.settings.issuer_did,
        "alg": CREDENTIAL_ALG,
        "publicKeyPem": export_public_pem(svc.issuer.issuer_sk),
    }), 200

def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(IssuerError)
    def handle_issuer_error(e: IssuerError):
        body = e.to_dict()
        if isinstance(e, MalformedToken):
            body["valid"] = False
        return jsonify(body), e.status

    @app.errorhandler(404)
    def handle_not_found(e):
        body = NotFound().to_dict()
        body["path"] = request.path
        return jsonify(body), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Server error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Internal server error"}), 500

def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[KeyValueStore] = None,
    clock: Callable[[], float] = time.time,
) -> Flask:
    if settings is None:
        settings = load_settings()

    app = Flask(__name__)
    app.extensions["issuer"] = IssuerServices(settings, backend=backend, clock=clock)

    # served at the root and under the /issuer prefix
    app.register_blueprint(bp)
    app.register_blueprint(bp, url_prefix="/issuer", name="issuer_prefixed")
    register_error_handlers(app)

    @app.before_request
    def log_request():
        logger.info("%s %s", request.method, request.path)

    @app.get("/health")
    def health():
        return {
            "ok": True,
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": utc_now_iso(),
        }, 200

    @app.get("/")
    def index():
        return {
            "message": "DID-Auth & JWT-VC Issuer Service",
            "version": SERVICE_VERSION,
            "endpoints": {
                "health": "/health",
                "challenge": "/challenge?did=<did>",
                "verifyChallenge": "/verify-challenge",
                "issueVc": "/issue-vc",
                "verifyVc": "/verify-vc?jwt=<jwt>",
                "publicKey": "/public-key",
            },
        }, 200

    return app

def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        logger.error("Run: python -m issuer.keygen, then cp .env.generated .env")
        return 1

    configure_logging(settings.log_level)
    try:
        app = create_app(settings)
    except ValueError as e:
        logger.error("Invalid issuer key: %s", e)
        return 1

    logger.info("Issuer DID: %s", settings.issuer_did)
    logger.info("Listening on http://%s:%s", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port, threaded=True)
    return 0

if __name__ == '__main__':
    sys.exit(main())
