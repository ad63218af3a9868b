"""
Custom managers for products app models.

Category is an MPTT tree, so its queryset has to stay a TreeQuerySet while
also carrying the tenant and lifecycle filters every catalog model has.
"""

from mptt.managers import TreeManager
from mptt.querysets import TreeQuerySet

from tenant.managers import TenantArchivableQuerySet


class CategoryQuerySet(TreeQuerySet, TenantArchivableQuerySet):
    """
    Tenant-scoped, archivable QuerySet for the category tree.
    """

    def with_descendant_ids(self):
        """
        Return the ids of these categories plus every category below them.
        """
        return set(
            self.get_descendants(include_self=True).values_list("id", flat=True)
        )


class CategoryManager(TreeManager.from_queryset(CategoryQuerySet)):
    pass
