from .config import Config

SECRET_KEY = "test-secret"
JWT_SECRET_KEY = "test-jwt-secret"
ACCESS_TOKEN_MINUTES = 15
REFRESH_TOKEN_DAYS = 7

DB_CONFIG = Config.db_config()
REDIS_CONFIG = Config.redis_config()
MAIL_CONFIG = Config.mail_config()

SESSION_TTL_SECONDS = 300
MARK_REQUIRES_OPEN_SESSION = False

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
