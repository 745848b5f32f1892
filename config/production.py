import os

from .config import Config, _flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "please-set-JWT_SECRET_KEY")
ACCESS_TOKEN_MINUTES = Config.ACCESS_TOKEN_MINUTES
REFRESH_TOKEN_DAYS = Config.REFRESH_TOKEN_DAYS

DB_CONFIG = Config.db_config()
REDIS_CONFIG = Config.redis_config()
MAIL_CONFIG = Config.mail_config()

SESSION_TTL_SECONDS = Config.SESSION_TTL_SECONDS
MARK_REQUIRES_OPEN_SESSION = Config.MARK_REQUIRES_OPEN_SESSION

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = _flag("AUTO_INIT_DB")
AUTO_SEED_DB = _flag("AUTO_SEED_DB")
