"""
Actor context handed to every POS service.

The API layer builds one ActorContext per request from the gateway token
and passes it, together with a database alias, into the service
constructors. Services never look up the current tenant on their own.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import uuid

from django.db import DEFAULT_DB_ALIAS, models
from django.utils.translation import gettext_lazy as _

from core_backend.exceptions import PermissionDeniedError

if TYPE_CHECKING:
    from tenant.models import Tenant


class Role(models.TextChoices):
    OWNER = "OWNER", _("Owner")
    ADMIN = "ADMIN", _("Admin")
    MANAGER = "MANAGER", _("Manager")
    CASHIER = "CASHIER", _("Cashier")
    KITCHEN = "KITCHEN", _("Kitchen")


MANAGER_ROLES = frozenset({Role.OWNER.value, Role.ADMIN.value, Role.MANAGER.value})
ADMIN_ROLES = frozenset({Role.OWNER.value, Role.ADMIN.value})


@dataclass(frozen=True)
class ActorContext:
    """The authenticated caller: tenant, user id and role."""

    tenant: "Tenant"
    user_id: Optional[uuid.UUID]
    role: str

    @property
    def is_manager_or_higher(self) -> bool:
        return self.role in MANAGER_ROLES

    @property
    def is_admin_or_higher(self) -> bool:
        return self.role in ADMIN_ROLES

    def require_manager(self, action: str = "perform this action"):
        if not self.is_manager_or_higher:
            raise PermissionDeniedError(f"Manager approval required to {action}")

    def require_admin(self, action: str = "perform this action"):
        if not self.is_admin_or_higher:
            raise PermissionDeniedError(f"Owner or admin role required to {action}")


class TenantService:
    """
    Base class for services bound to one actor and one database alias.
    """

    def __init__(self, actor: ActorContext, using: str = DEFAULT_DB_ALIAS):
        self.actor = actor
        self.using = using

    @property
    def tenant(self):
        return self.actor.tenant
