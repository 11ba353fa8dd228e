import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _mssql_uri():
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASSWORD")
    server = os.getenv("DB_SERVER")
    port = os.getenv("DB_PORT")
    name = os.getenv("DB_NAME")
    return (
        f"mssql+pyodbc://{user}:{password}@{server}:{port}/{name}"
        f"?driver=ODBC+Driver+17+for+SQL+Server"
    )


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or _mssql_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT (header for API clients, cookie for the admin console)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=12)
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_COOKIE_SECURE = os.getenv("JWT_COOKIE_SECURE", "true").lower() == "true"
    JWT_COOKIE_CSRF_PROTECT = os.getenv("JWT_COOKIE_CSRF_PROTECT", "true").lower() == "true"

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "gbp")
    INVOICE_DAYS_UNTIL_DUE = int(os.getenv("INVOICE_DAYS_UNTIL_DUE", "30"))

    # Approval intents older than this are picked up by `flask reconcile-approvals`
    APPROVAL_RECONCILE_AFTER_MINUTES = int(
        os.getenv("APPROVAL_RECONCILE_AFTER_MINUTES", "30")
    )


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-for-hs256"
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_CSRF_PROTECT = False
    STRIPE_SECRET_KEY = "sk_test_dummy"
    BCRYPT_LOG_ROUNDS = 4
