"""App configuration for the payments Django app."""

from __future__ import annotations

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the `payments` app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
