import os


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", 24 * 7))

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///trackflow.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    APP_URL = os.getenv("APP_URL", FRONTEND_URL)

    # Calendar day used for "today" in streaks, dashboards and reminder sweeps
    TRACKFLOW_TIMEZONE = os.getenv("TRACKFLOW_TIMEZONE", "UTC")

    VAPID_PUBLIC_KEY = os.getenv("VAPID_PUBLIC_KEY")
    VAPID_PRIVATE_KEY = os.getenv("VAPID_PRIVATE_KEY")
    VAPID_EMAIL = os.getenv("VAPID_EMAIL")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 25))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS")
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)

    NOTIFICATION_MAX_WORKERS = int(os.getenv("NOTIFICATION_MAX_WORKERS", 8))
    CRON_SECRET = os.getenv("CRON_SECRET")

    LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", os.path.join(os.path.expanduser("~"), ".trackflow", "store.json"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
