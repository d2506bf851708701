from __future__ import annotations

import os


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./db.sqlite")

OPENF1_BASE_URL = os.getenv("OPENF1_BASE_URL", "https://api.openf1.org/v1")
OPENF1_TIMEOUT = float(os.getenv("OPENF1_TIMEOUT", "30"))
OPENF1_JITTER = float(os.getenv("OPENF1_JITTER", "1.0"))  # seconds, 0 disables
IMPORT_PAUSE_SECONDS = float(os.getenv("IMPORT_PAUSE_SECONDS", "4"))

STANDINGS_CACHE_TTL = int(os.getenv("STANDINGS_CACHE_TTL", "3600"))  # seconds

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
