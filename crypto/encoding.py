import base64
import json
from typing import Any, Union

def b64url_encode(data: bytes) -> str:
    """Encode bytes to a URL-safe Base64 string without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')

def b64url_decode(s: Union[str, bytes]) -> bytes:
    """
    Strict inverse of b64url_encode: any input that b64url_encode would not
    have produced raises ValueError, so distinct strings never decode to the
    same bytes.
    """
    if isinstance(s, bytes):
        s = s.decode("ascii")

    pad = "=" * ((4 - len(s) % 4) % 4)
    data = base64.b64decode((s + pad).encode("ascii"), altchars=b"-_", validate=True)
    if b64url_encode(data) != s:
        raise ValueError("non-canonical base64url")
    return data

def canonicalize(obj: Any) -> bytes:
    """
        Canonical JSON used for every signed segment.
        -sort_keys = True. stable key order
        -separators = (',', ':') no whitespace
        -ensure_ascii = False keeps UTF-8 stable (then encode to UTF-8)
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False
    ).encode('utf-8')

def b64url_json(segment: str) -> Any:
    """Decode one base64url segment of a compact token into JSON."""
    return json.loads(b64url_decode(segment).decode("utf-8"))

def hex_to_bytes(s: str) -> bytes:
    """Decode hex with an optional 0x prefix."""
    if s.startswith(("0x", "0X")):
        s = s[2:]
    return bytes.fromhex(s)
