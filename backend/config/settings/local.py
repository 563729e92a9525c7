"""Local development settings."""
from .base import *  # noqa: F401, F403

DEBUG = True

# CORS - allow frontend in development
CORS_ALLOW_ALL_ORIGINS = True

CSRF_TRUSTED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Additional apps for development
INSTALLED_APPS += [  # noqa: F405
    "django_extensions",
]

# Email backend for development
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

LOG_LEVEL = "DEBUG"
LOGGING["loggers"]["apps"]["level"] = LOG_LEVEL  # noqa: F405

# Print notifications and skip router calls unless configured otherwise
NOTIFICATION_GATEWAY = env("NOTIFICATION_GATEWAY", default="apps.notifications.gateway.ConsoleGateway")  # noqa: F405
NETWORK_PROFILE_CONTROLLER = env(  # noqa: F405
    "NETWORK_PROFILE_CONTROLLER",
    default="apps.network.controller.DryRunController",
)
