import os
from datetime import timedelta
from sqlalchemy.pool import QueuePool
from urllib.parse import urlparse
import pymysql
pymysql.install_as_MySQLdb()


def _env_flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change_this_secret_key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": QueuePool,
        "pool_size": 5,
        "max_overflow": 2,
        "pool_timeout": 10
    }

    JWT_EXPIRATION = timedelta(hours=int(os.getenv("JWT_EXPIRATION_HOURS", "8")))
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "False") == "True"
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Exam policy
    GRACE_PERIOD_DAYS = int(os.getenv("GRACE_PERIOD_DAYS", "30"))
    ENFORCE_TIME_LIMIT = _env_flag("ENFORCE_TIME_LIMIT", "true")
    SUBMISSION_TOLERANCE_SECONDS = int(os.getenv("SUBMISSION_TOLERANCE_SECONDS", "60"))
    STALE_ATTEMPT_HOURS = int(os.getenv("STALE_ATTEMPT_HOURS", "24"))

class DevConfig(Config):
    """Development Configuration"""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.getenv('SQLALCHEMY_DATABASE_URI', 'mysql+pymysql://root:@localhost/flight_exams')

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ENFORCE_TIME_LIMIT = True
    SUBMISSION_TOLERANCE_SECONDS = 60
    GRACE_PERIOD_DAYS = 30

class ProdConfig(Config):
    """Production Configuration"""
    DEBUG = False
    SESSION_COOKIE_SECURE = True

    raw_db_url = os.getenv('DATABASE_URL')

    if raw_db_url:
        if raw_db_url.startswith("mysql://"):
            raw_db_url = raw_db_url.replace("mysql://", "mysql+pymysql://", 1)

        parsed_url = urlparse(raw_db_url)
        SQLALCHEMY_DATABASE_URI = f"{parsed_url.scheme}://{parsed_url.netloc}{parsed_url.path}"
    else:
        SQLALCHEMY_DATABASE_URI = os.getenv('JAWSDB_URL', 'sqlite:///flight_exams.db')

config_dict = {
    "development": DevConfig,
    "testing": TestConfig,
    "production": ProdConfig
}
