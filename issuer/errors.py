"""
Error kinds raised by the protocol core. The Flask layer renders every one
of them as {"success": false, "error": message} with the class's status.
"""
from typing import Optional

class IssuerError(Exception):
    status = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class ValidationFailed(IssuerError):
    status = 400
    message = "Validation failed"


class InvalidFormat(ValidationFailed):
    message = "Invalid did:pkh format"


class MalformedToken(ValidationFailed):
    message = "Invalid JWT format"


class AuthenticationFailed(IssuerError):
    status = 401
    message = "Authentication failed"


class ChallengeNotFound(AuthenticationFailed):
    # one message for never-issued, expired and wrong nonce
    message = "Challenge not found or expired. Request a new challenge."


class SignatureInvalid(AuthenticationFailed):
    message = "Signature verification failed"


class NoSessionToken(AuthenticationFailed):
    message = "No session token provided. Complete DID-Auth first."


class InvalidSessionToken(AuthenticationFailed):
    message = "Invalid session token"


class AuthorizationFailed(IssuerError):
    status = 403
    message = "Forbidden"


class SubjectMismatch(AuthorizationFailed):
    message = "Session DID does not match subject DID"


class NotFound(IssuerError):
    status = 404
    message = "Endpoint not found"


class ConfigError(Exception):
    def __init__(self, missing=(), message: Optional[str] = None):
        self.missing = list(missing)
        super().__init__(message or f"Missing required environment variables: {', '.join(self.missing)}")
