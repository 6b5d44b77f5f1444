"""
Provenance – Django Settings (Infrastructure Only)
===================================================
Django hosts the relational trail store. The chain core does not
depend on Django; only provenance.django_store does.

Database and logging are configured from the environment.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("PROVENANCE_SECRET_KEY", "provenance-dev-key")

DEBUG = os.environ.get("PROVENANCE_DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "provenance.django_store",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Set PROVENANCE_DB_ENGINE for PostgreSQL, e.g.
# django.db.backends.postgresql.
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("PROVENANCE_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("PROVENANCE_DB_NAME", str(BASE_DIR / "provenance.sqlite3")),
        "USER": os.environ.get("PROVENANCE_DB_USER", ""),
        "PASSWORD": os.environ.get("PROVENANCE_DB_PASSWORD", ""),
        "HOST": os.environ.get("PROVENANCE_DB_HOST", ""),
        "PORT": os.environ.get("PROVENANCE_DB_PORT", ""),
    }
}

PROVENANCE_DATABASE_ALIAS = "default"

# ── Workflow ──────────────────────────────────────────────────
# False: any event type may follow any other (generic append-only log).
PROVENANCE_STRICT_TRANSITIONS = (
    os.environ.get("PROVENANCE_STRICT_TRANSITIONS", "false").lower() == "true"
)

# ── Time ──────────────────────────────────────────────────────
# Event timestamps must round-trip as aware UTC datetimes.
TIME_ZONE = "UTC"
USE_TZ = True

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "provenance": {
            "handlers": ["console"],
            "level": os.environ.get("PROVENANCE_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}

# ── Default Primary Key ──────────────────────────────────────
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
