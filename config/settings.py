import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-not-for-production")
DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "core",
    "catalog",
    "inventory",
    "partners",
    "fx",
    "pricing",
    "sales",
    "quotations",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("ERP_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "es-pe"
TIME_ZONE = "America/Lima"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# 견적 엔진 기본값. DB의 core.Setting 행이 있으면 그 값이 우선한다.
ERP_DEFAULTS = {
    "quotations": {
        "default_validity_days": 15,
        "price_change_tolerance_percentage": Decimal("1.00"),
    },
    "margins": {
        "min_margin_percentage": Decimal("10.00"),
        "default_margin_percentage": Decimal("20.00"),
        "alert_low_margin": True,
    },
    "commissions": {
        "calculate_on": "margin",
        "default_percentage": Decimal("3.00"),
    },
    "currency": {
        "default_currency": "PEN",
        "default_exchange_rate": Decimal("3.75"),
    },
    "taxes": {
        "igv_rate": Decimal("0.18"),
    },
    "pricing": {
        "default_price_list_code": "GENERAL",
    },
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "catalog": {"handlers": ["console"], "level": "INFO"},
        "pricing": {"handlers": ["console"], "level": "INFO"},
        "quotations": {"handlers": ["console"], "level": "INFO"},
        "sales": {"handlers": ["console"], "level": "INFO"},
    },
}
