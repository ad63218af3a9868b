from django.apps import AppConfig
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Sanity-check token verification settings when Django starts up.
        """
        signing_key = settings.SIMPLE_JWT.get("SIGNING_KEY")
        if not settings.DEBUG and signing_key == settings.SECRET_KEY:
            logger.warning(
                "POS_JWT_SIGNING_KEY is not set; gateway tokens are verified with SECRET_KEY"
            )
