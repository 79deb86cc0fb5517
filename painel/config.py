# painel/config.py
import os
from typing import List

# -----------------------------------------------------------------------------
# Banco (Postgres em produção, SQLite local)
# -----------------------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./painel.db")

# -----------------------------------------------------------------------------
# Sessão fictícia
# -----------------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
MOCK_EMAIL = os.getenv("MOCK_EMAIL", "admin@orla33.com")
MOCK_PASSWORD = os.getenv("MOCK_PASSWORD", "orla33admin")
MOCK_AUTH_DELAY_MS = int(os.getenv("MOCK_AUTH_DELAY_MS", "500"))
SESSION_KEY = "orla33_mock_auth"

# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()]
