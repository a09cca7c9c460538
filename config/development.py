import os

ENVIRONMENT = "development"

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "staff_management_db"),
}
DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "3"))
DB_CONNECT_RETRY_SECONDS = float(os.getenv("DB_CONNECT_RETRY_SECONDS", "3"))

DEBUG = True

# Token lifetimes
ACCESS_TOKEN_HOURS = 24
ADMIN_TOKEN_HOURS = 8
RESET_TOKEN_MINUTES = 60
VERIFICATION_CODE_MINUTES = 10

# Any origin is accepted in development
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]
RATE_LIMIT_WINDOW_SECONDS = 900
RATE_LIMIT_MAX_REQUESTS = 500

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
