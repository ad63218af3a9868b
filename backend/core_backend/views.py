from django.db import connection
from django.http import JsonResponse
from rest_framework.decorators import api_view
from rest_framework.response import Response
import logging

logger = logging.getLogger(__name__)


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    connection.ensure_connection()
    return JsonResponse({"status": "ok", "message": "Backend is running"})


@api_view(["GET"])
def whoami(request):
    """The actor the gateway token resolved to."""
    actor = request.user.context
    return Response(
        {
            "tenant_id": str(actor.tenant.id),
            "tenant_slug": actor.tenant.slug,
            "user_id": str(actor.user_id) if actor.user_id else None,
            "role": actor.role,
            "currency": actor.tenant.currency,
            "tax_rate": str(actor.tenant.tax_rate),
        }
    )
