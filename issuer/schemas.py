"""Request body schemas. Every violation surfaces as ValidationFailed."""
from typing import Any, Dict

from jsonschema import Draft7Validator

from issuer.did import DID_PKH_RE
from issuer.errors import InvalidFormat, ValidationFailed
from issuer.issue import MAX_VALIDITY_DAYS

DID_PKH_PATTERN = DID_PKH_RE.pattern

CHALLENGE_QUERY = {
    "type": "object",
    "required": ["did"],
    "properties": {
        "did": {"type": "string", "pattern": DID_PKH_PATTERN},
    },
}

VERIFY_CHALLENGE_BODY = {
    "type": "object",
    "required": ["did", "challenge", "signature"],
    "properties": {
        "did": {"type": "string", "pattern": DID_PKH_PATTERN},
        "challenge": {"type": "string", "minLength": 1},
        "signature": {"type": "string", "pattern": "^0x[a-fA-F0-9]{130}$"},
    },
}

ISSUE_VC_BODY = {
    "type": "object",
    "required": ["subjectDid", "credentialSubject"],
    "properties": {
        "subjectDid": {"type": "string", "pattern": "^did:"},
        "credentialSubject": {
            "type": "object",
            "additionalProperties": {"type": ["string", "number", "boolean", "null"]},
        },
        "validityDays": {"type": "integer", "minimum": 1, "maximum": MAX_VALIDITY_DAYS},
    },
}

_validators = {
    id(schema): Draft7Validator(schema)
    for schema in (CHALLENGE_QUERY, VERIFY_CHALLENGE_BODY, ISSUE_VC_BODY)
}

def validate(instance: Any, schema: Dict[str, Any], error=ValidationFailed) -> Dict[str, Any]:
    validator = _validators.get(id(schema)) or Draft7Validator(schema)
    if next(validator.iter_errors(instance), None) is not None:
        raise error()
    return instance

def validate_challenge_query(args: Dict[str, Any]) -> str:
    validate(args, CHALLENGE_QUERY, error=InvalidFormat)
    return args["did"]
