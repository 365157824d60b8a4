"""Django app configuration for drop app."""

from django.apps import AppConfig


class DropConfig(AppConfig):
    """Configuration for drop app."""

    name = 'server.apps.drop'
    verbose_name = 'File drop'
