# worldgrid/config.py
from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATA_DIR = PROJECT_ROOT / "data"
DATA_DIR.mkdir(parents=True, exist_ok=True)

DB_PATH = DATA_DIR / "world.db"
DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH.as_posix()}")

# Admin override key (single source of truth)
ADMIN_KEY: str = os.getenv("ADMIN_KEY", "")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

SESSION_HOURS: int = int(os.getenv("SESSION_HOURS", "24"))

# Flip zone unlock flags right after a successful build
RECONCILE_ON_BUILD: bool = os.getenv("RECONCILE_ON_BUILD", "1") == "1"
