"""Shared model base classes."""
from django.db import models


class TimestampedModel(models.Model):
    """Adds creation and last-update timestamps; billing rows keep both for auditing."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
