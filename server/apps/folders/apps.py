"""Django app configuration for folders app."""

from django.apps import AppConfig


class FoldersConfig(AppConfig):
    """Configuration for folders app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.folders'
    verbose_name = 'Folders'
