"""Django app configuration for wmsflow."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class WmsflowConfig(AppConfig):
    """Configuration for wmsflow app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "wmsflow"
    verbose_name = _("Warehouse Operations")

    def ready(self):
        # Connect signal receivers (transfer automation)
        from wmsflow.services import transfers  # noqa: F401
