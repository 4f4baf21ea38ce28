from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, List
import json
import threading

DEFAULT_LOG_DIR = Path("logs")

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace('+00:00', 'Z')

class IssuanceLog:
    """
    Append-only JSON-lines trail of issued credentials. Records ids only,
    never the claims.
    """

    def __init__(self, log_dir=DEFAULT_LOG_DIR):
        self.path = Path(log_dir) / "issuance.log"
        self._lock = threading.Lock()

    def record(self, issuer: str, subject: str, jti: str, vc_type: List[str]) -> Dict[str, Any]:
        entry = {
            "timestamp": utc_now_iso(),
            "issuer": issuer,
            "subject": subject,
            "jti": jti,
            "vcType": list(vc_type),
            "action": "VC_ISSUED",
        }
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, sort_keys=True) + "\n")
        return entry

    def entries(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
