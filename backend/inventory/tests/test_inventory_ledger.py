"""
Inventory ledger tests.

Stock only changes when a movement is posted, and cancelling a posted
movement reverses exactly what posting did. No posting or reversal may
leave a stock row below zero.
"""
import re

import pytest

from core_backend.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PermissionDeniedError,
    POSValidationError,
)
from core_backend.tests.fixtures import set_stock
from inventory.models import InventoryMovement, StockItem
from inventory.services import (
    InventoryMovementService,
    MovementLineInput,
    MovementQuery,
    StockDelta,
    StockLedger,
    StockService,
    WarehouseService,
    movement_deltas,
)


def on_hand(warehouse, product):
    item = StockItem.objects.filter(warehouse=warehouse, product=product).first()
    return item.on_hand if item else None


class TestMovementDeltas:
    """Signed stock effect per movement type."""

    def test_receipt_adds(self):
        assert movement_deltas("RECEIPT", "w1", None, [("p1", 5)]) == [StockDelta("w1", "p1", 5)]

    def test_delivery_removes(self):
        assert movement_deltas("DELIVERY", "w1", None, [("p1", 5)]) == [StockDelta("w1", "p1", -5)]

    def test_adjustment_is_signed(self):
        assert movement_deltas("ADJUSTMENT", "w1", None, [("p1", -3), ("p2", 2)]) == [
            StockDelta("w1", "p1", -3),
            StockDelta("w1", "p2", 2),
        ]

    def test_transfer_moves_between_warehouses(self):
        assert movement_deltas("TRANSFER", "w1", "w2", [("p1", 4)]) == [
            StockDelta("w1", "p1", -4),
            StockDelta("w2", "p1", 4),
        ]

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown movement type"):
            movement_deltas("SHRINK", "w1", None, [("p1", 1)])


@pytest.mark.django_db
class TestStockLedger:
    def test_deltas_aggregate_before_check(self, tenant_a, warehouse_main, product_pizza):
        set_stock(tenant_a, warehouse_main, product_pizza, 2)

        # -5 alone would fail; netted with +4 it leaves 1
        StockLedger(tenant_a, "default").apply([
            StockDelta(warehouse_main.id, product_pizza.id, -5),
            StockDelta(warehouse_main.id, product_pizza.id, 4),
        ])
        assert on_hand(warehouse_main, product_pizza) == 1

    def test_nothing_written_when_any_row_fails(self, tenant_a, warehouse_main, product_pizza, product_soda):
        set_stock(tenant_a, warehouse_main, product_pizza, 10)

        with pytest.raises(InsufficientStockError) as exc_info:
            StockLedger(tenant_a, "default").apply([
                StockDelta(warehouse_main.id, product_pizza.id, -1),
                StockDelta(warehouse_main.id, product_soda.id, -1),
            ])

        assert exc_info.value.available == 0
        assert exc_info.value.required == 1
        assert on_hand(warehouse_main, product_pizza) == 10

    def test_creates_missing_rows(self, tenant_a, warehouse_main, product_pizza):
        StockLedger(tenant_a, "default").apply([StockDelta(warehouse_main.id, product_pizza.id, 7)])
        assert on_hand(warehouse_main, product_pizza) == 7

    def test_row_created_by_concurrent_posting(self, monkeypatch, tenant_a, warehouse_main, product_pizza):
        # Another posting inserts the row after this one decided it was missing
        monkeypatch.setattr(StockLedger, "_missing_keys", lambda self, keys: list(keys))
        set_stock(tenant_a, warehouse_main, product_pizza, 5)

        StockLedger(tenant_a, "default").apply([StockDelta(warehouse_main.id, product_pizza.id, 3)])

        assert on_hand(warehouse_main, product_pizza) == 8
        assert StockItem.objects.filter(warehouse=warehouse_main, product=product_pizza).count() == 1


@pytest.mark.django_db
class TestMovementLifecycle:
    """DRAFT -> POSTED -> CANCELLED, or DRAFT -> CANCELLED."""

    def test_draft_does_not_touch_stock(self, manager_a, warehouse_main, product_pizza):
        movement = InventoryMovementService(manager_a).create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 10)]
        )

        assert movement.status == InventoryMovement.MovementStatus.DRAFT
        assert on_hand(warehouse_main, product_pizza) is None

    def test_generated_reference(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        first = service.create_movement(warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)])
        second = service.create_movement(warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)])

        assert re.fullmatch(r"REC-\d{14}-0001", first.reference)
        assert second.reference.endswith("-0002")

    def test_post_receipt_then_cancel_round_trip(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 10)]
        )

        movement = service.post_movement(movement.id)
        assert movement.status == InventoryMovement.MovementStatus.POSTED
        assert movement.posted_by == manager_a.user_id
        assert on_hand(warehouse_main, product_pizza) == 10

        movement = service.cancel_movement(movement.id)
        assert movement.status == InventoryMovement.MovementStatus.CANCELLED
        assert on_hand(warehouse_main, product_pizza) == 0

    def test_post_immediately(self, manager_a, warehouse_main, product_pizza):
        movement = InventoryMovementService(manager_a).create_movement(
            warehouse_main.id,
            "RECEIPT",
            [MovementLineInput(product_pizza.id, 3)],
            post_immediately=True,
        )
        assert movement.status == InventoryMovement.MovementStatus.POSTED
        assert on_hand(warehouse_main, product_pizza) == 3

    def test_delivery_beyond_stock_rejected(self, manager_a, tenant_a, warehouse_main, product_pizza):
        set_stock(tenant_a, warehouse_main, product_pizza, 2)
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "DELIVERY", [MovementLineInput(product_pizza.id, 3)]
        )

        with pytest.raises(InsufficientStockError, match="Available: 2, Required: 3"):
            service.post_movement(movement.id)

        movement.refresh_from_db()
        assert movement.status == InventoryMovement.MovementStatus.DRAFT
        assert on_hand(warehouse_main, product_pizza) == 2

    def test_cancel_reversal_cannot_go_negative(self, manager_a, tenant_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        receipt = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 5)], post_immediately=True
        )
        service.create_movement(
            warehouse_main.id, "DELIVERY", [MovementLineInput(product_pizza.id, 4)], post_immediately=True
        )

        with pytest.raises(InsufficientStockError):
            service.cancel_movement(receipt.id)

        receipt.refresh_from_db()
        assert receipt.status == InventoryMovement.MovementStatus.POSTED
        assert on_hand(warehouse_main, product_pizza) == 1

    def test_transfer(self, manager_a, tenant_a, warehouse_main, warehouse_backup, product_pizza):
        set_stock(tenant_a, warehouse_main, product_pizza, 10)
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id,
            "TRANSFER",
            [MovementLineInput(product_pizza.id, 4)],
            destination_warehouse_id=warehouse_backup.id,
            post_immediately=True,
        )

        assert movement.reference.startswith("TRF-")
        assert on_hand(warehouse_main, product_pizza) == 6
        assert on_hand(warehouse_backup, product_pizza) == 4

        service.cancel_movement(movement.id)
        assert on_hand(warehouse_main, product_pizza) == 10
        assert on_hand(warehouse_backup, product_pizza) == 0

    def test_adjustment_down(self, manager_a, tenant_a, warehouse_main, product_pizza):
        set_stock(tenant_a, warehouse_main, product_pizza, 10)
        InventoryMovementService(manager_a).create_movement(
            warehouse_main.id, "ADJUSTMENT", [MovementLineInput(product_pizza.id, -3)], post_immediately=True
        )
        assert on_hand(warehouse_main, product_pizza) == 7

    def test_cancel_draft_leaves_stock(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 10)]
        )
        service.cancel_movement(movement.id)

        assert on_hand(warehouse_main, product_pizza) is None
        with pytest.raises(ConflictError, match="already cancelled"):
            service.cancel_movement(movement.id)

    def test_posted_movement_cannot_be_posted_or_edited(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)], post_immediately=True
        )

        with pytest.raises(ConflictError, match="already posted"):
            service.post_movement(movement.id)
        with pytest.raises(ConflictError, match="Only draft movements can be edited"):
            service.update_movement(movement.id, notes="late note")

    def test_update_draft(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
        )
        movement = service.update_movement(movement.id, reference="  PO-778 ", notes="supplier A")

        assert movement.reference == "PO-778"
        assert movement.notes == "supplier A"

    def test_list_filters(self, manager_a, warehouse_main, warehouse_backup, product_pizza):
        service = InventoryMovementService(manager_a)
        draft = service.create_movement(warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)])
        service.create_movement(
            warehouse_backup.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)], post_immediately=True
        )

        drafts = service.list_movements(MovementQuery(status="DRAFT"))
        assert [movement.id for movement in drafts] == [draft.id]
        at_main = service.list_movements(MovementQuery(warehouse_id=warehouse_main.id))
        assert [movement.id for movement in at_main] == [draft.id]


@pytest.mark.django_db
class TestMovementValidation:
    def test_lines_required(self, manager_a, warehouse_main):
        with pytest.raises(POSValidationError, match="at least one line"):
            InventoryMovementService(manager_a).create_movement(warehouse_main.id, "RECEIPT", [])

    def test_zero_quantity(self, manager_a, warehouse_main, product_pizza):
        with pytest.raises(POSValidationError, match="non-zero"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id, "ADJUSTMENT", [MovementLineInput(product_pizza.id, 0)]
            )

    def test_negative_receipt(self, manager_a, warehouse_main, product_pizza):
        with pytest.raises(POSValidationError, match="Only adjustments take negative quantities"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, -1)]
            )

    def test_transfer_needs_destination(self, manager_a, warehouse_main, product_pizza):
        with pytest.raises(POSValidationError, match="destination warehouse"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id, "TRANSFER", [MovementLineInput(product_pizza.id, 1)]
            )

    def test_transfer_to_same_warehouse(self, manager_a, warehouse_main, product_pizza):
        with pytest.raises(POSValidationError, match="must differ"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id,
                "TRANSFER",
                [MovementLineInput(product_pizza.id, 1)],
                destination_warehouse_id=warehouse_main.id,
            )

    def test_destination_only_for_transfers(self, manager_a, warehouse_main, warehouse_backup, product_pizza):
        with pytest.raises(POSValidationError, match="Only transfers"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id,
                "RECEIPT",
                [MovementLineInput(product_pizza.id, 1)],
                destination_warehouse_id=warehouse_backup.id,
            )

    def test_foreign_product(self, manager_a, warehouse_main, product_tenant_b):
        with pytest.raises(POSValidationError, match="products were not found"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_main.id, "RECEIPT", [MovementLineInput(product_tenant_b.id, 1)]
            )

    def test_foreign_warehouse(self, manager_a, warehouse_tenant_b, product_pizza):
        with pytest.raises(NotFoundError, match="Warehouse not found"):
            InventoryMovementService(manager_a).create_movement(
                warehouse_tenant_b.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
            )

    def test_cashier_cannot_move_stock(self, cashier_a, warehouse_main, product_pizza):
        with pytest.raises(PermissionDeniedError):
            InventoryMovementService(cashier_a).create_movement(
                warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
            )


@pytest.mark.django_db
class TestMovementDeletion:
    """Only owners and admins delete, and only drafts."""

    def test_owner_deletes_draft(self, owner_a, warehouse_main, product_pizza):
        service = InventoryMovementService(owner_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
        )
        service.delete_movement(movement.id)
        assert not InventoryMovement.objects.filter(pk=movement.pk).exists()

    def test_manager_cannot_delete(self, manager_a, warehouse_main, product_pizza):
        service = InventoryMovementService(manager_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
        )
        with pytest.raises(PermissionDeniedError, match="Owner or admin"):
            service.delete_movement(movement.id)

    def test_posted_cannot_be_deleted(self, owner_a, warehouse_main, product_pizza):
        service = InventoryMovementService(owner_a)
        movement = service.create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)], post_immediately=True
        )
        with pytest.raises(ConflictError, match="Only draft movements can be deleted"):
            service.delete_movement(movement.id)


@pytest.mark.django_db
class TestWarehouses:
    def test_code_normalized_and_unique(self, manager_a):
        service = WarehouseService(manager_a)
        warehouse = service.create_warehouse("Cellar", " cel ")
        assert warehouse.code == "CEL"

        with pytest.raises(ConflictError) as exc_info:
            service.create_warehouse("Other cellar", "CEL")
        assert exc_info.value.code == "warehouse_code_taken"

    def test_archive_blocked_by_drafts(self, manager_a, warehouse_main, product_pizza):
        InventoryMovementService(manager_a).create_movement(
            warehouse_main.id, "RECEIPT", [MovementLineInput(product_pizza.id, 1)]
        )
        with pytest.raises(ConflictError) as exc_info:
            WarehouseService(manager_a).archive_warehouse(warehouse_main.id)
        assert exc_info.value.code == "warehouse_has_drafts"

    def test_archived_warehouse_hidden(self, manager_a, warehouse_main, warehouse_backup):
        service = WarehouseService(manager_a)
        service.archive_warehouse(warehouse_backup.id)

        assert list(service.list_warehouses()) == [warehouse_main]
        assert len(service.list_warehouses(include_archived=True)) == 2


@pytest.mark.django_db
class TestStockAlerts:
    """Alert severity from on-hand against the reorder point."""

    def test_severity_ordering(self, manager_a, tenant_a, warehouse_main, product_pizza, product_soda, product_burger):
        set_stock(tenant_a, warehouse_main, product_pizza, 0)
        soda = set_stock(tenant_a, warehouse_main, product_soda, 4)
        soda.reorder_point = 10
        soda.save()

        alerts = StockService(manager_a).low_stock_alerts()

        assert [(alert.severity, alert.product_name) for alert in alerts] == [
            ("OUT_OF_STOCK", "Margherita"),
            ("CRITICAL", "Soda"),
        ]
        assert alerts[1].deficit == 6

    def test_low_and_untracked(self, manager_a, tenant_a, warehouse_main, product_pizza, product_soda):
        StockService(manager_a).set_stock_settings(warehouse_main.id, product_pizza.id, reorder_point=10)
        set_stock(tenant_a, warehouse_main, product_pizza, 8)

        alerts = StockService(manager_a).low_stock_alerts()

        assert [(alert.severity, alert.product_name) for alert in alerts] == [
            ("LOW", "Margherita"),
            ("UNTRACKED", "Soda"),
        ]

    def test_healthy_stock_has_no_alert(self, manager_a, tenant_a, warehouse_main, product_pizza, product_soda):
        set_stock(tenant_a, warehouse_main, product_pizza, 50)
        set_stock(tenant_a, warehouse_main, product_soda, 50)
        assert StockService(manager_a).low_stock_alerts() == []

    def test_settings_validation(self, manager_a, warehouse_main, product_pizza):
        with pytest.raises(POSValidationError, match="reorder_point"):
            StockService(manager_a).set_stock_settings(warehouse_main.id, product_pizza.id, reorder_point=-1)

    def test_settings_need_manager(self, cashier_a, warehouse_main, product_pizza):
        with pytest.raises(PermissionDeniedError):
            StockService(cashier_a).set_stock_settings(warehouse_main.id, product_pizza.id, reorder_point=5)

    def test_available_subtracts_reserved(self, manager_a, tenant_a, warehouse_main, product_pizza):
        set_stock(tenant_a, warehouse_main, product_pizza, 10)
        stock = StockService(manager_a).set_stock_settings(warehouse_main.id, product_pizza.id, reserved=3)
        assert stock.available == 7
