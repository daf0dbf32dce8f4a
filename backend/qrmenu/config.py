# backend/qrmenu/config.py
from __future__ import annotations
import os
from datetime import timedelta


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Tokens are signed with JWT_SECRET when set, otherwise SECRET_KEY
    JWT_SECRET = os.environ.get("JWT_SECRET")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///qrmenu.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_ENV = os.environ.get("APP_ENV", "development")

    # Token and session lifetimes
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get("ACCESS_TOKEN_EXPIRES_MINUTES", "15")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.environ.get("REFRESH_TOKEN_EXPIRES_DAYS", "30")))
    SESSION_LIFETIME = timedelta(days=30)
    OTP_TTL = timedelta(minutes=5)
    OTP_MAX_ATTEMPTS = 5  # wrong codes before an OTP session stops matching
    PASSWORD_RESET_TTL = timedelta(minutes=15)

    # Cookie lifetimes (seconds)
    ACCESS_COOKIE_MAX_AGE = 60 * 60 * 24
    REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30
    OTP_COOKIE_MAX_AGE = 60 * 5
    AUTH_COOKIE_SECURE = APP_ENV == "production"

    # Storage retry policy for batch writes
    RETRY_ATTEMPTS = 3
    RETRY_BASE_DELAY = 0.5

    # Outgoing mail: "console" only logs, "smtp" delivers
    MAIL_BACKEND = os.environ.get("MAIL_BACKEND", "smtp" if APP_ENV == "production" else "console")
    SMTP_HOST = os.environ.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER = os.environ.get("SMTP_USER", "")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = os.environ.get("SMTP_USE_TLS", "true").lower() == "true"
    MAIL_FROM = os.environ.get("MAIL_FROM", "noreply@qrmenu.local")

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")
    CORS_ORIGINS = _env_list(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173",
    )

    # Include raw exception text in 500 responses
    EXPOSE_ERROR_DETAILS = os.environ.get("EXPOSE_ERROR_DETAILS", "true").lower() == "true"
