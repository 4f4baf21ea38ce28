"""
Compact JWS (header.payload.signature) on top of the canonical JSON and
base64url helpers. Credentials are framed here; session tokens go through
PyJWT but share check_segments so both reject re-encoded segments.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict

from crypto.encoding import b64url_decode, b64url_encode, b64url_json, canonicalize

class TokenFormatError(ValueError):
    pass

@dataclass
class CompactToken:
    header: Dict[str, Any]
    payload: Dict[str, Any]
    signing_input: bytes
    signature: bytes

    @property
    def alg(self) -> str:
        return self.header.get("alg", "")

def encode_compact(header: Dict[str, Any], payload: Dict[str, Any], sign: Callable[[bytes], bytes]) -> str:
    signing_input = b64url_encode(canonicalize(header)) + "." + b64url_encode(canonicalize(payload))
    signature = sign(signing_input.encode("ascii"))
    return signing_input + "." + b64url_encode(signature)

def split_compact(token: str) -> list:
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise TokenFormatError("token must have three non-empty segments")
    return parts

def check_segments(token: str) -> None:
    """Raises TokenFormatError unless every segment is canonical base64url."""
    parts = split_compact(token)
    try:
        for part in parts:
            b64url_decode(part)
    except ValueError as e:
        raise TokenFormatError(f"undecodable segment: {e}") from e

def decode_compact(token: str) -> CompactToken:
    """Parse without verifying. Raises TokenFormatError on any framing problem."""
    h, p, s = split_compact(token)
    try:
        header = b64url_json(h)
        payload = b64url_json(p)
        signature = b64url_decode(s)
    except ValueError as e:
        raise TokenFormatError(f"undecodable segment: {e}") from e

    if not isinstance(header, dict) or not isinstance(header.get("alg"), str):
        raise TokenFormatError("header must be an object naming alg")
    if not isinstance(payload, dict):
        raise TokenFormatError("payload must be an object")

    return CompactToken(
        header=header,
        payload=payload,
        signing_input=f"{h}.{p}".encode("ascii"),
        signature=signature,
    )
