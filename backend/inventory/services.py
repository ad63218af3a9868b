from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, List, Optional
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from core_backend.context import TenantService
from core_backend.exceptions import (
    ConflictError,
    InsufficientStockError,
    POSValidationError,
)
from products.models import Product
from tenant.managers import get_for_tenant
from .models import InventoryMovement, InventoryMovementLine, StockItem, Warehouse

logger = logging.getLogger(__name__)

MovementType = InventoryMovement.MovementType
MovementStatus = InventoryMovement.MovementStatus


@dataclass(frozen=True)
class StockDelta:
    warehouse_id: object
    product_id: object
    quantity: int


def movement_deltas(movement_type, warehouse_id, destination_warehouse_id, lines) -> List[StockDelta]:
    """
    Signed stock changes a movement makes when posted.

    RECEIPT adds, DELIVERY removes, ADJUSTMENT applies the signed quantity,
    TRANSFER removes at the source and adds at the destination.

    lines: iterable of (product_id, quantity) pairs.
    """
    deltas = []
    for product_id, quantity in lines:
        if movement_type == MovementType.RECEIPT:
            deltas.append(StockDelta(warehouse_id, product_id, quantity))
        elif movement_type == MovementType.DELIVERY:
            deltas.append(StockDelta(warehouse_id, product_id, -abs(quantity)))
        elif movement_type == MovementType.ADJUSTMENT:
            deltas.append(StockDelta(warehouse_id, product_id, quantity))
        elif movement_type == MovementType.TRANSFER:
            deltas.append(StockDelta(warehouse_id, product_id, -abs(quantity)))
            deltas.append(StockDelta(destination_warehouse_id, product_id, abs(quantity)))
        else:
            raise ValueError(f"Unknown movement type '{movement_type}'")
    return deltas


def reversed_deltas(deltas: Iterable[StockDelta]) -> List[StockDelta]:
    return [StockDelta(d.warehouse_id, d.product_id, -d.quantity) for d in deltas]


@dataclass(frozen=True)
class MovementLineInput:
    product_id: object
    quantity: int


@dataclass(frozen=True)
class MovementQuery:
    status: Optional[str] = None
    type: Optional[str] = None
    warehouse_id: Optional[object] = None


class StockLedger:
    """
    Applies stock deltas inside the caller's transaction.

    Missing StockItem rows are created at zero first, then every touched row
    is locked before the availability check, and no quantity is written unless
    every row passes.
    """

    def __init__(self, tenant, using):
        self.tenant = tenant
        self.using = using

    def _missing_keys(self, keys):
        existing = set(
            StockItem.objects.using(self.using)
            .for_tenant(self.tenant)
            .filter(
                warehouse_id__in={key[0] for key in keys},
                product_id__in={key[1] for key in keys},
            )
            .values_list("warehouse_id", "product_id")
        )
        return [key for key in keys if key not in existing]

    def _ensure_rows(self, keys):
        # get_or_create re-reads when a concurrent posting inserted the row first
        for warehouse_id, product_id in sorted(self._missing_keys(keys), key=str):
            StockItem.objects.using(self.using).get_or_create(
                warehouse_id=warehouse_id,
                product_id=product_id,
                defaults={"tenant": self.tenant, "on_hand": 0},
            )

    def apply(self, deltas: Iterable[StockDelta]):
        net = defaultdict(int)
        for delta in deltas:
            net[(delta.warehouse_id, delta.product_id)] += delta.quantity

        self._ensure_rows(list(net))

        warehouse_ids = {key[0] for key in net}
        product_ids = {key[1] for key in net}
        stock_items = {
            (item.warehouse_id, item.product_id): item
            for item in StockItem.objects.using(self.using)
            .select_for_update()
            .for_tenant(self.tenant)
            .filter(warehouse_id__in=warehouse_ids, product_id__in=product_ids)
            .order_by("id")
        }

        for key, quantity in net.items():
            if quantity >= 0:
                continue
            on_hand = stock_items[key].on_hand
            if on_hand + quantity < 0:
                product = Product.objects.using(self.using).get(pk=key[1])
                logger.warning(
                    f"Insufficient stock for {product.name} at warehouse {key[0]}: "
                    f"on hand {on_hand}, required {-quantity}"
                )
                raise InsufficientStockError(product, available=on_hand, required=-quantity)

        for key, quantity in net.items():
            if quantity:
                stock = stock_items[key]
                stock.on_hand += quantity
                stock.save(using=self.using, update_fields=["on_hand", "updated_at"])


class WarehouseService(TenantService):
    def _warehouses(self):
        return Warehouse.objects.using(self.using)

    def list_warehouses(self, include_archived: bool = False):
        warehouses = self._warehouses().for_tenant(self.tenant)
        if not include_archived:
            warehouses = warehouses.active()
        return warehouses

    def get_warehouse(self, warehouse_id) -> Warehouse:
        return get_for_tenant(self._warehouses(), self.tenant, warehouse_id, "Warehouse")

    def create_warehouse(self, name: str, code: str) -> Warehouse:
        self.actor.require_manager("manage warehouses")
        warehouse = Warehouse(tenant=self.tenant)
        return self._save(warehouse, name, code)

    def update_warehouse(self, warehouse_id, name: Optional[str] = None, code: Optional[str] = None) -> Warehouse:
        self.actor.require_manager("manage warehouses")
        warehouse = self.get_warehouse(warehouse_id)
        return self._save(
            warehouse,
            name if name is not None else warehouse.name,
            code if code is not None else warehouse.code,
        )

    def archive_warehouse(self, warehouse_id) -> Warehouse:
        self.actor.require_manager("manage warehouses")
        with transaction.atomic(using=self.using):
            warehouse = get_for_tenant(
                self._warehouses().select_for_update(), self.tenant, warehouse_id, "Warehouse"
            )
            has_drafts = warehouse.movements.using(self.using).filter(status=MovementStatus.DRAFT).exists()
            if has_drafts:
                raise ConflictError(
                    "Warehouse has draft movements; post or cancel them first",
                    code="warehouse_has_drafts",
                )
            warehouse.archive(using=self.using)
        logger.info(f"Archived warehouse {warehouse.code}")
        return warehouse

    def _save(self, warehouse, name, code):
        name = (name or "").strip()
        code = (code or "").strip().upper()
        if not name or not code:
            raise POSValidationError("Warehouse name and code are required")
        warehouse.name = name
        warehouse.code = code
        try:
            with transaction.atomic(using=self.using):
                warehouse.save(using=self.using)
        except IntegrityError:
            raise ConflictError(f"Warehouse code '{code}' is already in use", code="warehouse_code_taken")
        logger.info(f"Saved warehouse {warehouse.code}")
        return warehouse


class InventoryMovementService(TenantService):
    """
    The movement document lifecycle: DRAFT -> POSTED -> CANCELLED, or
    DRAFT -> CANCELLED. Only drafts may be edited or deleted.
    """

    def _movements(self):
        return InventoryMovement.objects.using(self.using)

    def get_movement(self, movement_id) -> InventoryMovement:
        return get_for_tenant(self._movements(), self.tenant, movement_id, "Inventory movement")

    def list_movements(self, query: MovementQuery = MovementQuery()):
        movements = self._movements().for_tenant(self.tenant)
        if query.status:
            movements = movements.filter(status=query.status)
        if query.type:
            movements = movements.filter(type=query.type)
        if query.warehouse_id:
            movements = movements.filter(warehouse_id=query.warehouse_id)
        return movements.select_related("warehouse", "destination_warehouse").prefetch_related("lines")

    def create_movement(
        self,
        warehouse_id,
        movement_type: str,
        lines: List[MovementLineInput],
        reference: Optional[str] = None,
        notes: str = "",
        destination_warehouse_id=None,
        post_immediately: bool = False,
    ) -> InventoryMovement:
        self.actor.require_manager("create inventory movements")
        if movement_type not in MovementType.values:
            raise POSValidationError(f"'{movement_type}' is not a valid movement type", details={"field": "type"})
        self._validate_lines(movement_type, lines)
        if reference is not None:
            reference = self._validate_reference(reference)

        with transaction.atomic(using=self.using):
            warehouses = Warehouse.objects.using(self.using).active()
            warehouse = get_for_tenant(warehouses, self.tenant, warehouse_id, "Warehouse")
            destination = None
            if movement_type == MovementType.TRANSFER:
                if destination_warehouse_id is None:
                    raise POSValidationError(
                        "Transfers need a destination warehouse",
                        details={"field": "destination_warehouse_id"},
                    )
                destination = get_for_tenant(
                    warehouses, self.tenant, destination_warehouse_id, "Destination warehouse"
                )
                if destination.pk == warehouse.pk:
                    raise POSValidationError(
                        "Source and destination warehouses must differ",
                        details={"field": "destination_warehouse_id"},
                    )
            elif destination_warehouse_id is not None:
                raise POSValidationError(
                    "Only transfers take a destination warehouse",
                    details={"field": "destination_warehouse_id"},
                )

            product_ids = {line.product_id for line in lines}
            products = {
                str(product.pk): product
                for product in Product.objects.using(self.using)
                .for_tenant(self.tenant)
                .filter(pk__in=product_ids)
            }
            if len(products) != len({str(pid) for pid in product_ids}):
                raise POSValidationError(
                    "One or more products were not found", details={"field": "lines"}
                )

            movement = InventoryMovement(
                tenant=self.tenant,
                warehouse=warehouse,
                destination_warehouse=destination,
                type=movement_type,
                reference=reference or self._generate_reference(movement_type),
                notes=notes or "",
                created_by=self.actor.user_id,
            )
            movement.save(using=self.using)
            InventoryMovementLine.objects.using(self.using).bulk_create([
                InventoryMovementLine(
                    tenant=self.tenant,
                    movement=movement,
                    product=products[str(line.product_id)],
                    quantity=line.quantity,
                )
                for line in lines
            ])

            if post_immediately:
                self._post(movement)

        logger.info(f"Created {movement.type} movement {movement.reference} ({movement.status})")
        return movement

    def update_movement(self, movement_id, reference: Optional[str] = None, notes: Optional[str] = None) -> InventoryMovement:
        self.actor.require_manager("edit inventory movements")
        if reference is not None:
            reference = self._validate_reference(reference)

        with transaction.atomic(using=self.using):
            movement = self._lock(movement_id)
            if movement.status != MovementStatus.DRAFT:
                raise ConflictError("Only draft movements can be edited", code="movement_not_draft")
            if reference is not None:
                movement.reference = reference
            if notes is not None:
                movement.notes = notes
            movement.save(using=self.using)
        return movement

    def post_movement(self, movement_id) -> InventoryMovement:
        self.actor.require_manager("post inventory movements")
        with transaction.atomic(using=self.using):
            movement = self._lock(movement_id)
            if movement.status != MovementStatus.DRAFT:
                raise ConflictError(
                    f"Movement is already {movement.status.lower()}", code="movement_not_draft"
                )
            self._post(movement)

        logger.info(f"Posted {movement.type} movement {movement.reference}")
        return movement

    def cancel_movement(self, movement_id) -> InventoryMovement:
        """
        Cancel a movement. A posted movement has its stock effect reversed.
        """
        self.actor.require_manager("cancel inventory movements")
        with transaction.atomic(using=self.using):
            movement = self._lock(movement_id)
            if movement.status == MovementStatus.CANCELLED:
                raise ConflictError("Movement is already cancelled", code="movement_cancelled")

            if movement.status == MovementStatus.POSTED:
                StockLedger(self.tenant, self.using).apply(
                    reversed_deltas(self._deltas(movement))
                )

            movement.status = MovementStatus.CANCELLED
            movement.cancelled_at = timezone.now()
            movement.cancelled_by = self.actor.user_id
            movement.save(using=self.using)

        logger.info(f"Cancelled {movement.type} movement {movement.reference}")
        return movement

    def delete_movement(self, movement_id):
        self.actor.require_admin("delete inventory movements")
        with transaction.atomic(using=self.using):
            movement = self._lock(movement_id)
            if movement.status != MovementStatus.DRAFT:
                raise ConflictError("Only draft movements can be deleted", code="movement_not_draft")
            reference = movement.reference
            movement.delete(using=self.using)

        logger.info(f"Deleted draft movement {reference}")

    def _lock(self, movement_id) -> InventoryMovement:
        return get_for_tenant(
            self._movements().select_for_update(), self.tenant, movement_id, "Inventory movement"
        )

    def _deltas(self, movement):
        lines = movement.lines.using(self.using).values_list("product_id", "quantity")
        return movement_deltas(
            movement.type, movement.warehouse_id, movement.destination_warehouse_id, lines
        )

    def _post(self, movement):
        StockLedger(self.tenant, self.using).apply(self._deltas(movement))
        movement.status = MovementStatus.POSTED
        movement.posted_at = timezone.now()
        movement.posted_by = self.actor.user_id
        movement.save(using=self.using)

    def _validate_lines(self, movement_type, lines):
        if not lines:
            raise POSValidationError("A movement needs at least one line", details={"field": "lines"})
        for line in lines:
            quantity = line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity == 0:
                raise POSValidationError(
                    "Line quantities must be non-zero whole numbers", details={"field": "lines"}
                )
            if movement_type != MovementType.ADJUSTMENT and quantity < 0:
                raise POSValidationError(
                    "Only adjustments take negative quantities", details={"field": "lines"}
                )

    def _validate_reference(self, reference):
        reference = reference.strip()
        if not 1 <= len(reference) <= InventoryMovement.MAX_REFERENCE_LENGTH:
            raise POSValidationError(
                f"Reference must be 1 to {InventoryMovement.MAX_REFERENCE_LENGTH} characters",
                details={"field": "reference"},
            )
        return reference

    def _generate_reference(self, movement_type):
        prefix = InventoryMovement.REFERENCE_PREFIXES[movement_type]
        return f"{prefix}-{timezone.now():%Y%m%d%H%M%S}-{self._next_sequence(prefix):04d}"

    def _next_sequence(self, prefix):
        return (
            self._movements()
            .for_tenant(self.tenant)
            .filter(reference__startswith=f"{prefix}-")
            .count()
            + 1
        )


@dataclass(frozen=True)
class StockAlert:
    severity: str
    product_id: object
    product_name: str
    warehouse_id: Optional[object]
    warehouse_name: Optional[str]
    on_hand: int
    available: int
    reorder_point: int
    deficit: int


class StockService(TenantService):
    """Stock level reads, reorder settings and low-stock alerts."""

    OUT_OF_STOCK = "OUT_OF_STOCK"
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    UNTRACKED = "UNTRACKED"

    def _stock(self):
        return StockItem.objects.using(self.using).for_tenant(self.tenant)

    def stock_levels(self, warehouse_id=None, product_id=None, low_only: bool = False):
        stock = self._stock().select_related("warehouse", "product")
        if warehouse_id:
            stock = stock.filter(warehouse_id=warehouse_id)
        if product_id:
            stock = stock.filter(product_id=product_id)
        if low_only:
            return [item for item in stock if item.is_low_stock]
        return stock

    def set_stock_settings(self, warehouse_id, product_id, reorder_point=None, reserved=None) -> StockItem:
        self.actor.require_manager("change stock settings")
        for name, value in (("reorder_point", reorder_point), ("reserved", reserved)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
                raise POSValidationError(
                    f"{name} must be a non-negative whole number", details={"field": name}
                )

        with transaction.atomic(using=self.using):
            warehouse = get_for_tenant(
                Warehouse.objects.using(self.using), self.tenant, warehouse_id, "Warehouse"
            )
            product = get_for_tenant(
                Product.objects.using(self.using), self.tenant, product_id, "Product"
            )
            stock, _created = (
                StockItem.objects.using(self.using)
                .select_for_update()
                .get_or_create(tenant=self.tenant, warehouse=warehouse, product=product)
            )
            if reorder_point is not None:
                stock.reorder_point = reorder_point
            if reserved is not None:
                stock.reserved = reserved
            stock.save(using=self.using)
        return stock

    def low_stock_alerts(self, warehouse_id=None) -> List[StockAlert]:
        """
        Alerts for inventory-tracked products, most severe first.

        OUT_OF_STOCK: nothing on hand. CRITICAL: at or below half the
        reorder point. LOW: at or below the reorder point. UNTRACKED: the
        product tracks inventory but has no stock row anywhere.
        """
        stock = (
            self._stock()
            .filter(product__track_inventory=True)
            .select_related("warehouse", "product")
        )
        if warehouse_id:
            stock = stock.filter(warehouse_id=warehouse_id)

        alerts = []
        for item in stock:
            severity = self._severity(item)
            if severity is None:
                continue
            alerts.append(StockAlert(
                severity=severity,
                product_id=item.product_id,
                product_name=item.product.name,
                warehouse_id=item.warehouse_id,
                warehouse_name=item.warehouse.name,
                on_hand=item.on_hand,
                available=item.available,
                reorder_point=item.reorder_point,
                deficit=max(0, item.reorder_point - item.on_hand),
            ))

        untracked = (
            Product.objects.using(self.using)
            .for_tenant(self.tenant)
            .active()
            .filter(track_inventory=True, stock_items__isnull=True)
        )
        for product in untracked:
            alerts.append(StockAlert(
                severity=self.UNTRACKED,
                product_id=product.pk,
                product_name=product.name,
                warehouse_id=None,
                warehouse_name=None,
                on_hand=0,
                available=0,
                reorder_point=0,
                deficit=0,
            ))

        order = {self.OUT_OF_STOCK: 0, self.CRITICAL: 1, self.LOW: 2, self.UNTRACKED: 3}
        return sorted(alerts, key=lambda alert: (order[alert.severity], alert.product_name))

    def _severity(self, item: StockItem) -> Optional[str]:
        if item.on_hand <= 0:
            return self.OUT_OF_STOCK
        if item.reorder_point > 0 and item.on_hand * 2 <= item.reorder_point:
            return self.CRITICAL
        if item.is_low_stock:
            return self.LOW
        return None
