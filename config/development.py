import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# memory: everything lives in process and is lost on restart; mysql: DB_CONFIG below
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "tutoring_center"),
}

# Price billed for a lesson attended without a usable subscription (0 = not billed)
DEFAULT_LESSON_PRICE = float(os.getenv("DEFAULT_LESSON_PRICE", "0"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
# Optional: also seed demo groups and students on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "1")))
