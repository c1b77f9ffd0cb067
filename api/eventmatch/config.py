import os

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/eventmatch")

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60"))
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

MATCH_FILTER_DEFAULT_LIMIT = int(os.getenv("MATCH_FILTER_DEFAULT_LIMIT", "50"))
MATCH_FILTER_MAX_LIMIT = int(os.getenv("MATCH_FILTER_MAX_LIMIT", "200"))
MATCH_GENERATE_TOP_K = int(os.getenv("MATCH_GENERATE_TOP_K", "0"))
PRUNE_STALE_MATCHES = os.getenv("PRUNE_STALE_MATCHES", "true").lower() == "true"

RL_MATCH_RESPONSE_LIMIT = int(os.getenv("RL_MATCH_RESPONSE_LIMIT", "100"))
RL_MATCH_GENERATE_LIMIT = int(os.getenv("RL_MATCH_GENERATE_LIMIT", "20"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))

_default_origins = "http://localhost:8080,http://127.0.0.1:8080,http://localhost:5173,capacitor://localhost"
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", _default_origins).split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
MIGRATIONS_DIR = os.getenv("MIGRATIONS_DIR", "").strip()
