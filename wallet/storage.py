from pathlib import Path
import json
from typing import Any, Dict

WALLET_DIR = Path("wallet_data")
CRED_PATH = WALLET_DIR / "credential_bundle.json"  # {"did":..., "jwtVc":..., "jti":..., "expiresAt":...}

def save_credential_bundle(bundle: Dict[str, Any], path: Path = CRED_PATH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(bundle, indent=2, sort_keys=True), encoding="utf-8")
    return path

def load_credential_bundle(path: Path = CRED_PATH) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError("No credential stored. Run python3 -m wallet.issue_credential first.")
    return json.loads(path.read_text(encoding="utf-8"))
