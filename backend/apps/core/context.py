"""GraphQL context for request handling."""
from dataclasses import dataclass
from typing import Any

from django.http import HttpRequest

DEFAULT_OPERATOR = "system"


@dataclass
class Context:
    """GraphQL request context."""

    request: HttpRequest
    user: Any | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and getattr(self.user, "is_authenticated", False)

    @property
    def operator(self) -> str:
        """Name recorded as the author of billing operations."""
        if self.is_authenticated:
            return self.user.get_username()
        header = self.request.headers.get("X-Operator", "") if self.request else ""
        return header or DEFAULT_OPERATOR


def get_context(request: HttpRequest) -> Context:
    """Build the context from the Django request and its session user."""
    user = getattr(request, "user", None)
    return Context(request=request, user=user)
