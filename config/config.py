import os


def _flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


class Config:
    """Environment-backed defaults shared by every settings module."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret")
    ACCESS_TOKEN_MINUTES = int(os.getenv("ACCESS_TOKEN_MINUTES", "15"))
    REFRESH_TOKEN_DAYS = int(os.getenv("REFRESH_TOKEN_DAYS", "7"))

    # MySQL
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = int(os.getenv("DB_PORT", "3306"))
    DB_USER = os.getenv("DB_USER", "root")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "classroom_attendance")

    # Redis
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_USERNAME = os.getenv("REDIS_USERNAME", "")
    REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "")
    REDIS_DB = int(os.getenv("REDIS_DB", "0"))

    # SMTP
    MAIL_HOST = os.getenv("MAIL_HOST", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
    MAIL_USERNAME = os.getenv("EMAIL_USER", "")
    MAIL_PASSWORD = os.getenv("EMAIL_PASS", "")
    MAIL_SENDER = os.getenv("MAIL_SENDER", "")
    MAIL_USE_SSL = _flag("MAIL_USE_SSL", "1")

    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "300"))
    MARK_REQUIRES_OPEN_SESSION = _flag("MARK_REQUIRES_OPEN_SESSION")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }

    @classmethod
    def redis_config(cls) -> dict:
        return {
            "host": cls.REDIS_HOST,
            "port": cls.REDIS_PORT,
            "username": cls.REDIS_USERNAME,
            "password": cls.REDIS_PASSWORD,
            "db": cls.REDIS_DB,
        }

    @classmethod
    def mail_config(cls) -> dict:
        return {
            "host": cls.MAIL_HOST,
            "port": cls.MAIL_PORT,
            "username": cls.MAIL_USERNAME,
            "password": cls.MAIL_PASSWORD,
            "sender": cls.MAIL_SENDER or cls.MAIL_USERNAME,
            "use_ssl": cls.MAIL_USE_SSL,
        }
