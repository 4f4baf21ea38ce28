import re
from dataclasses import dataclass

from issuer.errors import InvalidFormat

DID_PKH_RE = re.compile(r"^did:pkh:eip155:(\d+):(0x[a-fA-F0-9]{40})$")

@dataclass(frozen=True)
class PkhDid:
    chain_id: int
    address: str    # lowercase 0x-address

    def __str__(self) -> str:
        return f"did:pkh:eip155:{self.chain_id}:{self.address}"

def is_did_pkh(value) -> bool:
    return isinstance(value, str) and DID_PKH_RE.match(value) is not None

def parse_did(value) -> PkhDid:
    if not isinstance(value, str):
        raise InvalidFormat()
    m = DID_PKH_RE.match(value)
    if not m:
        raise InvalidFormat()
    return PkhDid(chain_id=int(m.group(1)), address=m.group(2).lower())

def normalize_did(value: str) -> str:
    """
    Lowercase the account part of a did:pkh so the same account always maps to
    the same key. Anything that isn't did:pkh comes back untouched.
    """
    m = DID_PKH_RE.match(value) if isinstance(value, str) else None
    if not m:
        return value
    return f"did:pkh:eip155:{m.group(1)}:{m.group(2).lower()}"

def did_for_address(address: str, chain_id: int = 1) -> str:
    return f"did:pkh:eip155:{chain_id}:{address.lower()}"
