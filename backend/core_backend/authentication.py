import logging
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken

from core_backend.context import ActorContext, Role
from tenant.models import Tenant

logger = logging.getLogger(__name__)


class POSActor:
    """
    request.user for POS API calls.

    There is no user table here; identity comes from the gateway's token
    and is only carried through to the services as an ActorContext.
    """

    is_authenticated = True
    is_anonymous = False

    def __init__(self, context: ActorContext):
        self.context = context

    @property
    def id(self):
        return self.context.user_id

    @property
    def pk(self):
        return self.context.user_id

    @property
    def role(self):
        return self.context.role

    @property
    def tenant(self):
        return self.context.tenant

    def __str__(self):
        return f"{self.role} {self.id} @ {self.tenant.slug}"


class GatewayJWTAuthentication(JWTStatelessUserAuthentication):
    """
    Authenticates tokens minted by the upstream auth gateway.

    The token must carry tenant_id and role claims next to the usual
    user id claim. The tenant is loaded here, once per request, so every
    downstream service receives it explicitly.
    """

    def get_user(self, validated_token):
        claim = settings.SIMPLE_JWT.get("USER_ID_CLAIM", "user_id")
        tenant_id = validated_token.get("tenant_id")
        role = validated_token.get("role")

        if not tenant_id or not role:
            raise InvalidToken("Token contained no tenant or role")

        if role not in Role.values:
            logger.warning(f"Rejected token with unknown role '{role}'")
            raise AuthenticationFailed("Unknown role", code="unknown_role")

        try:
            user_id = uuid.UUID(str(validated_token[claim])) if validated_token.get(claim) else None
        except ValueError:
            raise InvalidToken("Token contained an invalid user id")

        try:
            tenant = Tenant.objects.get(pk=tenant_id)
        except (Tenant.DoesNotExist, ValueError, DjangoValidationError):
            raise AuthenticationFailed("Tenant not found", code="tenant_not_found")

        if not tenant.is_active:
            raise AuthenticationFailed("Tenant is suspended", code="tenant_inactive")

        return POSActor(ActorContext(tenant=tenant, user_id=user_id, role=role))
