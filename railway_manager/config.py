from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Load .env early (no error if missing)
load_dotenv()

ROOT = Path(__file__).parents[1]


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    return Path(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_path: Path = field(default_factory=lambda: _env_path("RAILWAY_DB_PATH", ROOT / "data" / "railway.db"))
    audit_dir: Path = field(default_factory=lambda: _env_path("RAILWAY_AUDIT_DIR", ROOT / "audit"))
    # DEBUG | INFO | WARNING | ERROR | CRITICAL
    log_level: str = field(default_factory=lambda: os.getenv("RAILWAY_LOG_LEVEL", "INFO").upper())
    demo_enabled: bool = field(default_factory=lambda: _env_bool("RAILWAY_DEMO_ENABLED", True))
