import os
from urllib.parse import quote_plus


def _sqlite_db_uri(db_filename: str = "gridbase.db") -> str:
    """Return a SQLite URI inside the project's writable ``instance`` folder."""
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    instance_dir = os.path.join(project_root, "instance")
    os.makedirs(instance_dir, exist_ok=True)
    db_path = os.path.join(instance_dir, db_filename).replace("\\", "/")
    return f"sqlite:///{db_path}"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    if os.environ.get("DATABASE_URL"):
        SQLALCHEMY_DATABASE_URI = os.environ["DATABASE_URL"]
    else:
        db_host = os.environ.get("APP_HOST")
        db_user = os.environ.get("APP_USER")
        db_password = os.environ.get("APP_PASSWORD")
        db_name = os.environ.get("DB_NAME", "gridbase")
        db_port = os.environ.get("DB_PORT", "5432")

        if all([db_host, db_user, db_password]):
            SQLALCHEMY_DATABASE_URI = (
                "postgresql+psycopg2://"
                f"{quote_plus(db_user)}:{quote_plus(db_password)}"
                f"@{db_host}:{db_port}/{quote_plus(db_name)}"
            )
        else:
            # local dev fallback
            SQLALCHEMY_DATABASE_URI = _sqlite_db_uri("gridbase.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Security / session
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # JSON clients send the token from GET /auth/csrf-token in this header
    WTF_CSRF_HEADERS = ["X-CSRFToken", "X-CSRF-Token"]

    # Dev convenience: create tables on startup. Use `flask db upgrade` in production.
    AUTO_CREATE_DB = os.environ.get("AUTO_CREATE_DB", "true").lower() == "true"

    # CSV uploads (bytes)
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    # Row listing
    ROWS_PAGE_DEFAULT_LIMIT = 50
    ROWS_PAGE_MAX_LIMIT = int(os.environ.get("ROWS_PAGE_MAX_LIMIT", "500"))

    # -----------------
    # Stripe
    # -----------------
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_PRICE_ID_BASIC = os.environ.get("STRIPE_PRICE_ID_BASIC", "")
    STRIPE_PRICE_ID_PRO = os.environ.get("STRIPE_PRICE_ID_PRO", "")

    # Public URL of the web app (checkout success/cancel redirects)
    APP_URL = os.environ.get("APP_URL", "http://localhost:3000")


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False
    AUTO_CREATE_DB = os.environ.get("AUTO_CREATE_DB", "false").lower() == "true"
    SESSION_COOKIE_SECURE = os.environ.get("COOKIE_SECURE", "1") == "1"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    SECRET_KEY = "test"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
    STRIPE_PRICE_ID_BASIC = "price_basic"
    STRIPE_PRICE_ID_PRO = "price_pro"
    APP_URL = "http://testserver"
