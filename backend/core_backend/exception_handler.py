import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core_backend.exceptions import POSError

logger = logging.getLogger(__name__)


def pos_exception_handler(exc, context):
    """
    DRF exception handler that renders POSError subclasses.

    Anything else falls through to DRF's default handler.
    """
    if isinstance(exc, POSError):
        view = context.get("view")
        logger.warning(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: "
            f"{exc.message}"
        )
        payload = {"error": exc.message, "code": exc.code}
        if exc.details:
            payload["details"] = exc.details
        return Response(payload, status=exc.status_code)

    return exception_handler(exc, context)
