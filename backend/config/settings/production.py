"""Production settings."""
from .base import *  # noqa: F401, F403

DEBUG = False

ALLOWED_HOSTS = env.list("DJANGO_ALLOWED_HOSTS")  # noqa: F405

# Behind the reverse proxy that terminates TLS
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# The back office is the only browser client
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])  # noqa: F405

# Both integrations must be configured explicitly
NETWORK_CONTROLLER_URL = env("NETWORK_CONTROLLER_URL")  # noqa: F405
NETWORK_CONTROLLER_TOKEN = env("NETWORK_CONTROLLER_TOKEN")  # noqa: F405
WHATSAPP_API_URL = env("WHATSAPP_API_URL")  # noqa: F405

LOGGING["root"]["level"] = "INFO"  # noqa: F405
