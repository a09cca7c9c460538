import os

ENVIRONMENT = "testing"

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "staff_management_test"),
}
DB_CONNECT_RETRIES = 1
DB_CONNECT_RETRY_SECONDS = 0

DEBUG = False
TESTING = True

ACCESS_TOKEN_HOURS = 24
ADMIN_TOKEN_HOURS = 8
RESET_TOKEN_MINUTES = 60
VERIFICATION_CODE_MINUTES = 10

CORS_ORIGINS = ["http://localhost:3000"]
RATE_LIMIT_WINDOW_SECONDS = 900
RATE_LIMIT_MAX_REQUESTS = 1000

FRONTEND_URL = "http://localhost:3000"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
