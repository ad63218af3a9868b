"""
Archiving infrastructure for POS catalog records.

Catalog rows (products, tables, discounts, warehouses) are never deleted
while history points at them. Instead they move to an explicit ARCHIVED
lifecycle status, which keeps them out of selection lists but resolvable for
old orders and movements.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class LifecycleStatus(models.TextChoices):
    ACTIVE = "ACTIVE", _("Active")
    ARCHIVED = "ARCHIVED", _("Archived")


class ArchivableModel(models.Model):
    """
    Abstract base for models with an ACTIVE/ARCHIVED lifecycle.

    Pair it with TenantArchivableManager to get active()/archived() queries.
    """

    status = models.CharField(
        max_length=20,
        choices=LifecycleStatus.choices,
        default=LifecycleStatus.ACTIVE,
        db_index=True,
    )
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def is_active(self):
        return self.status == LifecycleStatus.ACTIVE

    def archive(self, using=None):
        """Move the record to ARCHIVED. Archiving twice is a no-op."""
        if self.status == LifecycleStatus.ARCHIVED:
            return
        self.status = LifecycleStatus.ARCHIVED
        self.archived_at = timezone.now()
        self.save(using=using, update_fields=["status", "archived_at"])
