# backend/tillshift/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tillshift.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tillshift.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flat sales tax, percent of the discounted subtotal ("15", "7.5")
    SALES_TAX_RATE_PERCENT = os.environ.get("SALES_TAX_RATE_PERCENT", "15")

    # Negative-stock override; enforced by the stock ledger only
    ALLOW_NEGATIVE_STOCK = _env_flag("ALLOW_NEGATIVE_STOCK")

    # Invoice numbers look like INV-20261017-0001
    INVOICE_PREFIX = os.environ.get("INVOICE_PREFIX", "INV")
    INVOICE_NUMBER_PAD = int(os.environ.get("INVOICE_NUMBER_PAD", "4"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
