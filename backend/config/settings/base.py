"""Base settings for isp-billing project."""
from decimal import Decimal
from pathlib import Path

import environ
from celery.schedules import crontab

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Environment
env = environ.Env(
    DEBUG=(bool, False),
)

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("DJANGO_SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env.bool("DJANGO_DEBUG", default=False)

ALLOWED_HOSTS = env.list("DJANGO_ALLOWED_HOSTS", default=[])

# Application definition
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS = [
    "strawberry_django",
    "corsheaders",
    "auditlog",
]

LOCAL_APPS = [
    "apps.core",
    "apps.customers",
    "apps.subscriptions",
    "apps.network",
    "apps.notifications",
    "apps.billing",
    "apps.advances",
    "apps.dunning",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "auditlog.middleware.AuditlogMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

# Database
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "es"
TIME_ZONE = env("TIME_ZONE", default="America/Lima")
USE_I18N = True
USE_TZ = True

LANGUAGES = [
    ("es", "Español"),
    ("en", "English"),
]

# Static files (CSS, JavaScript, Images)
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Media files
MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

# S3-compatible Object Storage
# Uses native django-storages setting names
AWS_S3_ENDPOINT_URL = env("AWS_S3_ENDPOINT_URL", default="")
AWS_ACCESS_KEY_ID = env("AWS_ACCESS_KEY_ID", default="")
AWS_SECRET_ACCESS_KEY = env("AWS_SECRET_ACCESS_KEY", default="")
AWS_STORAGE_BUCKET_NAME = env("AWS_STORAGE_BUCKET_NAME", default="")
AWS_S3_REGION_NAME = env("AWS_S3_REGION_NAME", default="us-east-1")

# Storage backend - use S3 if configured, otherwise local filesystem
if AWS_S3_ENDPOINT_URL:
    AWS_S3_ADDRESSING_STYLE = "path"
    AWS_S3_FILE_OVERWRITE = False
    AWS_DEFAULT_ACL = None  # Use bucket default ACL
    AWS_QUERYSTRING_AUTH = True  # Generate signed URLs

    STORAGES = {
        "default": {
            "BACKEND": "storages.backends.s3boto3.S3Boto3Storage",
        },
        "staticfiles": {
            "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
        },
    }
else:
    STORAGES = {
        "default": {
            "BACKEND": "django.core.files.storage.FileSystemStorage",
        },
        "staticfiles": {
            "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
        },
    }

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Auditlog
AUDITLOG_INCLUDE_ALL_MODELS = True
AUDITLOG_EXCLUDE_TRACKING_MODELS = (
    "billing.ledgerentry",
    "notifications.notificationlog",
)

# Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": env("REDIS_URL", default="redis://localhost:6379/0"),
    }
}

# Logging
LOG_LEVEL = env("LOG_LEVEL", default="INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

# Strawberry GraphQL
STRAWBERRY_DJANGO = {
    "FIELD_DESCRIPTION_FROM_HELP_TEXT": True,
    "TYPE_DESCRIPTION_FROM_MODEL_DOCSTRING": True,
}

# Billing
BILLING_CURRENCY = env("BILLING_CURRENCY", default="PEN")
BILLING_CURRENCY_SYMBOL = env("BILLING_CURRENCY_SYMBOL", default="S/")
BILLING_DUE_DAYS = env.int("BILLING_DUE_DAYS", default=7)
BILLING_DEFAULT_CREDIT_LIMIT = Decimal(env("BILLING_DEFAULT_CREDIT_LIMIT", default="500.00"))
BILLING_DEFAULT_CYCLE_DAY = env.int("BILLING_DEFAULT_CYCLE_DAY", default=1)
BILLING_RECEIPTS_DIR = env("BILLING_RECEIPTS_DIR", default="receipts")
BILLING_COMPANY_NAME = env("BILLING_COMPANY_NAME", default="")

# Collaborators (dotted paths, resolved with import_string)
BILLING_DOCUMENT_GENERATOR = env(
    "BILLING_DOCUMENT_GENERATOR",
    default="apps.billing.documents.WeasyPrintReceiptGenerator",
)
NOTIFICATION_GATEWAY = env(
    "NOTIFICATION_GATEWAY",
    default="apps.notifications.gateway.WhatsAppGateway",
)
NETWORK_PROFILE_CONTROLLER = env(
    "NETWORK_PROFILE_CONTROLLER",
    default="apps.network.controller.ProvisioningApiController",
)

# Dunning
DUNNING_REMINDER_DAYS_BEFORE = env.int("DUNNING_REMINDER_DAYS_BEFORE", default=5)
NETWORK_CUT_PROFILE = env("NETWORK_CUT_PROFILE", default="CORTE MOROSO")
NETWORK_CUT_PROFILE_MARKERS = env.list(
    "NETWORK_CUT_PROFILE_MARKERS",
    default=["CORTE MOROSO", "CORTE", "CUT", "SUSPENDED"],
)

# Network provisioning API
NETWORK_CONTROLLER_URL = env("NETWORK_CONTROLLER_URL", default="http://localhost:8728")
NETWORK_CONTROLLER_TOKEN = env("NETWORK_CONTROLLER_TOKEN", default="")

# WhatsApp gateway
WHATSAPP_API_URL = env("WHATSAPP_API_URL", default="http://localhost:3001")
WHATSAPP_COUNTRY_CODE = env("WHATSAPP_COUNTRY_CODE", default="51")

# Celery configuration
CELERY_BROKER_URL = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ACKS_LATE = True  # Ensure tasks aren't lost on worker crash
CELERY_TASK_REJECT_ON_WORKER_LOST = True

CELERY_BEAT_SCHEDULE = {
    "generate-monthly-debt": {
        "task": "apps.billing.tasks.generate_monthly_debt_task",
        "schedule": crontab(minute=0, hour=0, day_of_month=25),
    },
    "mark-overdue-invoices": {
        "task": "apps.billing.tasks.mark_overdue_invoices_task",
        "schedule": crontab(minute=10, hour=0),
    },
    "apply-advance-payments": {
        "task": "apps.advances.tasks.apply_advance_payments_task",
        "schedule": crontab(minute=0, hour=1),
    },
    "dunning-daily-cut": {
        "task": "apps.dunning.tasks.daily_cut_task",
        "schedule": crontab(minute=30, hour=0),
    },
    "dunning-monthly-cut": {
        "task": "apps.dunning.tasks.monthly_cut_task",
        "schedule": crontab(minute=0, hour=5, day_of_month=1),
    },
    "dunning-commitment-expiry": {
        "task": "apps.dunning.tasks.process_expired_commitments_task",
        "schedule": crontab(minute=0, hour=6),
    },
    "dunning-payment-reminders": {
        "task": "apps.dunning.tasks.payment_reminders_task",
        "schedule": crontab(minute=0, hour=9),
    },
}
