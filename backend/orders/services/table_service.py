import logging

from django.db import IntegrityError, transaction

from core_backend.context import TenantService
from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import DiningTable, Order
from tenant.managers import get_for_tenant

logger = logging.getLogger(__name__)


class TableService(TenantService):
    def list_tables(self, include_archived: bool = False):
        tables = DiningTable.objects.using(self.using).for_tenant(self.tenant)
        if not include_archived:
            tables = tables.active()
        return tables

    def create_table(self, name: str, capacity: int = 4) -> DiningTable:
        self.actor.require_manager("manage tables")
        name = (name or "").strip()
        if not name:
            raise POSValidationError("Table name is required", details={"field": "name"})
        table = DiningTable(tenant=self.tenant, name=name, capacity=capacity)
        try:
            with transaction.atomic(using=self.using):
                table.save(using=self.using)
        except IntegrityError:
            raise ConflictError(f"Table '{name}' already exists", code="table_exists")
        return table

    def archive_table(self, table_id) -> DiningTable:
        self.actor.require_manager("manage tables")
        with transaction.atomic(using=self.using):
            table = get_for_tenant(
                DiningTable.objects.using(self.using).select_for_update(), self.tenant, table_id, "Table"
            )
            if table.orders.using(self.using).filter(status__in=Order.OPEN_STATUSES).exists():
                raise ConflictError("Table has an open order", code="table_has_open_order")
            table.archive(using=self.using)
        logger.info(f"Archived table {table.name}")
        return table
