"""Django app configuration for Fuelman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class FuelmanConfig(AppConfig):
    """Configuration for Fuelman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "fuelman"
    verbose_name = _("Operações de Combustível")
