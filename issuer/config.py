from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from issuer.errors import ConfigError
from issuer.issue import DEFAULT_VALIDITY_DAYS, MAX_VALIDITY_DAYS
from issuer.kvstore import DEFAULT_STORE_PATH

REQUIRED = ("ISSUER_PRIVATE_KEY", "ISSUER_DID", "SESSION_SECRET")

@dataclass
class Settings:
    issuer_did: str
    issuer_private_key: str
    session_secret: str
    vc_validity_days: int = DEFAULT_VALIDITY_DAYS
    host: str = "127.0.0.1"
    port: int = 8080
    challenge_store: str = "memory"
    challenge_store_path: Path = DEFAULT_STORE_PATH
    log_dir: Path = Path("logs")
    log_level: str = "INFO"

def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(message=f"{name} must be an integer, got {raw!r}") from e

def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Reads settings from environ, or from os.environ after loading .env.
    Raises ConfigError naming every missing required variable.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    missing = [k for k in REQUIRED if not environ.get(k)]
    if missing:
        raise ConfigError(missing)

    days = _int(environ, "VC_TOKEN_TTL", DEFAULT_VALIDITY_DAYS)
    if not 1 <= days <= MAX_VALIDITY_DAYS:
        raise ConfigError(message=f"VC_TOKEN_TTL must be between 1 and {MAX_VALIDITY_DAYS}")

    store = environ.get("CHALLENGE_STORE", "memory").lower()
    if store not in ("memory", "file"):
        raise ConfigError(message="CHALLENGE_STORE must be 'memory' or 'file'")

    return Settings(
        issuer_did=environ["ISSUER_DID"],
        issuer_private_key=environ["ISSUER_PRIVATE_KEY"],
        session_secret=environ["SESSION_SECRET"],
        vc_validity_days=days,
        host=environ.get("HOST", "127.0.0.1"),
        port=_int(environ, "PORT", 8080),
        challenge_store=store,
        challenge_store_path=Path(environ.get("CHALLENGE_STORE_PATH") or DEFAULT_STORE_PATH),
        log_dir=Path(environ.get("LOG_DIR") or "logs"),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
    )

def configure_logging(level: str = "INFO") -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    return logging.getLogger("issuer")
