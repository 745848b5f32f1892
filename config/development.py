import os

from .config import Config, _flag

SECRET_KEY = Config.SECRET_KEY
JWT_SECRET_KEY = Config.JWT_SECRET_KEY
ACCESS_TOKEN_MINUTES = Config.ACCESS_TOKEN_MINUTES
REFRESH_TOKEN_DAYS = Config.REFRESH_TOKEN_DAYS

DB_CONFIG = Config.db_config()
REDIS_CONFIG = Config.redis_config()
MAIL_CONFIG = Config.mail_config()

SESSION_TTL_SECONDS = Config.SESSION_TTL_SECONDS
MARK_REQUIRES_OPEN_SESSION = Config.MARK_REQUIRES_OPEN_SESSION

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = _flag("AUTO_INIT_DB", "1")
# Optional: also create the two demo accounts
AUTO_SEED_DB = _flag("AUTO_SEED_DB")
