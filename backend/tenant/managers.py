from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from core_backend.exceptions import NotFoundError
from core_backend.utils.archiving import LifecycleStatus


class TenantQuerySet(models.QuerySet):
    """
    QuerySet with an explicit tenant predicate.

    FAILS CLOSED: for_tenant(None) returns an empty queryset.

    Usage:
        class Product(models.Model):
            tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)
            name = models.CharField(max_length=255)

            objects = TenantManager()

        Product.objects.using(alias).for_tenant(actor.tenant).filter(...)
    """

    def for_tenant(self, tenant):
        if tenant is None:
            return self.none()
        return self.filter(tenant=tenant)


class TenantArchivableQuerySet(TenantQuerySet):
    """
    TenantQuerySet for models carrying an explicit ACTIVE/ARCHIVED status.
    """

    def active(self):
        return self.filter(status=LifecycleStatus.ACTIVE)

    def archive(self):
        return self.update(status=LifecycleStatus.ARCHIVED, archived_at=timezone.now())


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    pass


class TenantArchivableManager(models.Manager.from_queryset(TenantArchivableQuerySet)):
    pass


def get_for_tenant(queryset, tenant, pk, resource=None):
    """
    Fetch one row by primary key inside the tenant's scope.

    A foreign tenant's id and a malformed id are indistinguishable from a
    missing row: all raise NotFoundError.
    """
    resource = resource or queryset.model._meta.verbose_name.title()
    if pk is None:
        raise NotFoundError(resource)
    try:
        return queryset.for_tenant(tenant).get(pk=pk)
    except (queryset.model.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError(resource, pk)
