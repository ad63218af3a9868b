"""
Order engine tests.

These tests drive the order aggregate through its services: creating
orders, adding and editing items, kitchen hand-off, payment, cancellation,
voids, refunds, tips and split plans.
"""
import uuid

import pytest

from core_backend.exceptions import (
    ConflictError,
    NoBillableItemsError,
    NotFoundError,
    PermissionDeniedError,
    POSValidationError,
)
from orders.models import Order, OrderItem, VoidRefund
from orders.services.item_service import OrderItemService
from orders.services.kitchen_service import KitchenService
from orders.services.order_service import OrderQuery, OrderService
from orders.services.tip_service import TipService
from orders.services.void_service import VoidRefundService
from payments.models import Payment
from payments.services import PaymentService


def open_order(actor, **kwargs):
    order, _created = OrderService(actor).create_order(**kwargs)
    return order


def first_item(order):
    return order.items.order_by("created_at").first()


@pytest.mark.django_db
class TestOrderCreation:
    """Orders open empty, numbered per tenant, one per table."""

    def test_create_order_defaults(self, cashier_a, tenant_a):
        order, created = OrderService(cashier_a).create_order(notes="window seat")

        assert created is True
        assert order.tenant == tenant_a
        assert order.status == Order.OrderStatus.OPEN
        assert order.currency == "USD"
        assert order.total_cents == 0
        assert order.notes == "window seat"
        assert order.opened_by == cashier_a.user_id

    def test_order_numbers_are_sequential_per_tenant(self, cashier_a, cashier_b):
        first = open_order(cashier_a)
        second = open_order(cashier_a)
        other = open_order(cashier_b)

        assert first.order_number == "ORD-00001"
        assert second.order_number == "ORD-00002"
        assert other.order_number == "ORD-00001"

    def test_table_reuses_open_order(self, cashier_a, table_a):
        service = OrderService(cashier_a)
        order, created = service.create_order(table_id=table_a.id)
        again, created_again = service.create_order(table_id=table_a.id)

        assert created is True
        assert created_again is False
        assert again.id == order.id

    def test_table_gets_new_order_after_close(self, cashier_a, table_a):
        service = OrderService(cashier_a)
        order, _ = service.create_order(table_id=table_a.id)
        service.cancel_order(order.id)

        fresh, created = service.create_order(table_id=table_a.id)
        assert created is True
        assert fresh.id != order.id

    def test_other_tenants_table_not_found(self, cashier_a, table_b):
        with pytest.raises(NotFoundError, match="Table not found"):
            OrderService(cashier_a).create_order(table_id=table_b.id)

    def test_list_orders_filters(self, cashier_a, table_a):
        service = OrderService(cashier_a)
        at_table = open_order(cashier_a, table_id=table_a.id)
        cancelled = open_order(cashier_a)
        service.cancel_order(cancelled.id)

        open_ids = {order.id for order in service.list_orders(OrderQuery(open_only=True))}
        assert open_ids == {at_table.id}

        cancelled_ids = {order.id for order in service.list_orders(OrderQuery(status="CANCELLED"))}
        assert cancelled_ids == {cancelled.id}

        table_ids = {order.id for order in service.list_orders(OrderQuery(table_id=table_a.id))}
        assert table_ids == {at_table.id}


@pytest.mark.django_db
class TestOrderItems:
    """Adding and editing items keeps totals current."""

    def test_add_item_snapshots_product(self, cashier_a, product_pizza):
        order = open_order(cashier_a)
        order = OrderItemService(cashier_a).add_item(order.id, product_pizza.id, quantity=2)

        assert order.subtotal_cents == 2000
        assert order.tax_cents == 100
        assert order.total_cents == 2100

        product_pizza.price_cents = 1500
        product_pizza.name = "Renamed"
        product_pizza.save()

        item = first_item(order)
        assert item.unit_price_cents == 1000
        assert item.product_name == "Margherita"

    def test_add_custom_item(self, cashier_a):
        order = open_order(cashier_a)
        order = OrderItemService(cashier_a).add_custom_item(
            order.id, name="Corkage", unit_price_cents=1050
        )

        assert order.subtotal_cents == 1050
        assert order.tax_cents == 53
        assert first_item(order).product_id is None

    @pytest.mark.parametrize("quantity", [0, 100, -1])
    def test_quantity_out_of_range(self, cashier_a, product_pizza, quantity):
        order = open_order(cashier_a)
        with pytest.raises(POSValidationError):
            OrderItemService(cashier_a).add_item(order.id, product_pizza.id, quantity=quantity)

    def test_other_tenants_product_not_found(self, cashier_a, product_tenant_b):
        order = open_order(cashier_a)
        with pytest.raises(NotFoundError, match="Product not found"):
            OrderItemService(cashier_a).add_item(order.id, product_tenant_b.id)

    def test_archived_product_cannot_be_added(self, cashier_a, product_pizza):
        product_pizza.archive()
        order = open_order(cashier_a)
        with pytest.raises(NotFoundError):
            OrderItemService(cashier_a).add_item(order.id, product_pizza.id)

    def test_patch_quantity_recalculates(self, cashier_a, product_pizza):
        service = OrderItemService(cashier_a)
        order = service.add_item(open_order(cashier_a).id, product_pizza.id)
        order = service.patch_item(order.id, first_item(order).id, quantity=3)

        assert order.subtotal_cents == 3000
        assert order.total_cents == 3150

    def test_patch_requires_a_change(self, cashier_a, product_pizza):
        service = OrderItemService(cashier_a)
        order = service.add_item(open_order(cashier_a).id, product_pizza.id)
        with pytest.raises(POSValidationError, match="No changes provided"):
            service.patch_item(order.id, first_item(order).id)

    def test_sent_items_cannot_be_edited(self, cashier_a, product_pizza):
        service = OrderItemService(cashier_a)
        order = service.add_item(open_order(cashier_a).id, product_pizza.id)
        KitchenService(cashier_a).send_to_kitchen(order.id)

        with pytest.raises(ConflictError) as exc_info:
            service.patch_item(order.id, first_item(order).id, quantity=2)
        assert exc_info.value.code == "item_not_editable"

    def test_status_cannot_move_backwards(self, kitchen_a, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        KitchenService(cashier_a).send_to_kitchen(order.id)

        with pytest.raises(ConflictError) as exc_info:
            OrderItemService(kitchen_a).patch_item(order.id, first_item(order).id, status="NEW")
        assert exc_info.value.code == "illegal_item_transition"

    def test_voided_item_is_frozen(self, cashier_a, product_pizza, product_burger):
        service = OrderItemService(cashier_a)
        order = service.add_item(open_order(cashier_a).id, product_pizza.id)
        order = service.add_item(order.id, product_burger.id)
        pizza = first_item(order)

        order = service.patch_item(order.id, pizza.id, status="VOID")
        assert order.subtotal_cents == 500

        with pytest.raises(ConflictError) as exc_info:
            service.patch_item(order.id, pizza.id, status="READY")
        assert exc_info.value.code == "item_void"

        # Repeating VOID is accepted
        service.patch_item(order.id, pizza.id, status="VOID")

    def test_cannot_void_last_billable_item(self, cashier_a, product_pizza):
        service = OrderItemService(cashier_a)
        order = service.add_item(open_order(cashier_a).id, product_pizza.id)
        item = first_item(order)

        with pytest.raises(ConflictError) as exc_info:
            service.patch_item(order.id, item.id, status="VOID")
        assert exc_info.value.code == "last_billable_item"

        item.refresh_from_db()
        assert item.status == OrderItem.ItemStatus.NEW

    def test_item_progress_drives_order_status(self, cashier_a, kitchen_a, product_pizza, product_burger):
        items = OrderItemService(cashier_a)
        order = items.add_item(open_order(cashier_a).id, product_pizza.id)
        order = items.add_item(order.id, product_burger.id)
        order = KitchenService(cashier_a).send_to_kitchen(order.id)
        assert order.status == Order.OrderStatus.IN_KITCHEN

        kitchen = OrderItemService(kitchen_a)
        for item in order.items.all():
            order = kitchen.patch_item(order.id, item.id, status="READY")
        assert order.status == Order.OrderStatus.READY

        # New food after the kitchen finished reopens the order
        order = items.add_item(order.id, product_burger.id)
        assert order.status == Order.OrderStatus.OPEN


@pytest.mark.django_db
class TestKitchenHandoff:
    """Sending moves NEW items to SENT and stamps the first send."""

    def test_send_to_kitchen(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        order = KitchenService(cashier_a).send_to_kitchen(order.id)

        assert order.status == Order.OrderStatus.IN_KITCHEN
        assert order.sent_to_kitchen_at is not None
        assert set(order.items.values_list("status", flat=True)) == {"SENT"}

    def test_first_send_stamp_is_kept(self, cashier_a, product_pizza, product_burger):
        items = OrderItemService(cashier_a)
        kitchen = KitchenService(cashier_a)
        order = items.add_item(open_order(cashier_a).id, product_pizza.id)
        first_sent_at = kitchen.send_to_kitchen(order.id).sent_to_kitchen_at

        items.add_item(order.id, product_burger.id)
        order = kitchen.send_to_kitchen(order.id)

        assert order.sent_to_kitchen_at == first_sent_at
        assert set(order.items.values_list("status", flat=True)) == {"SENT"}

    def test_empty_order_cannot_be_sent(self, cashier_a):
        order = open_order(cashier_a)
        with pytest.raises(NoBillableItemsError):
            KitchenService(cashier_a).send_to_kitchen(order.id)


@pytest.mark.django_db
class TestPayment:
    """Payment captures at most the outstanding balance."""

    def test_full_card_payment(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        result = PaymentService(cashier_a).pay(order.id, "CARD")

        assert result.order.status == Order.OrderStatus.PAID
        assert result.order.closed_at is not None
        assert result.payment.amount_cents == 1050
        assert result.payment.status == Payment.PaymentStatus.CAPTURED
        assert result.change_due_cents == 0

    def test_cash_overpayment_gives_change(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        result = PaymentService(cashier_a).pay(order.id, "CASH", amount_cents=2000)

        assert result.payment.amount_cents == 1050
        assert result.payment.received_cents == 2000
        assert result.payment.change_due_cents == 950
        assert result.change_due_cents == 950

    def test_card_overpayment_is_capped(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        result = PaymentService(cashier_a).pay(order.id, "CARD", amount_cents=5000)

        assert result.payment.amount_cents == 1050
        assert result.change_due_cents == 0

    def test_partial_payment_then_settle(self, cashier_a, kitchen_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        order = KitchenService(cashier_a).send_to_kitchen(order.id)
        payments = PaymentService(cashier_a)

        result = payments.pay(order.id, "CARD", amount_cents=500)
        assert result.order.status == Order.OrderStatus.FOR_PAYMENT

        # Kitchen progress does not pull the order out of the payment phase
        order = OrderItemService(kitchen_a).patch_item(order.id, first_item(order).id, status="READY")
        assert order.status == Order.OrderStatus.FOR_PAYMENT

        result = payments.pay(order.id, "CASH")
        assert result.payment.amount_cents == 550
        assert result.order.status == Order.OrderStatus.PAID
        assert sum(p.amount_cents for p in payments.list_payments(order.id)) == 1050

    def test_paying_paid_order_is_idempotent(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        payments = PaymentService(cashier_a)
        payments.pay(order.id, "CARD")

        again = payments.pay(order.id, "CARD")
        assert again.payment is None
        assert again.order.status == Order.OrderStatus.PAID
        assert Payment.objects.filter(order=order).count() == 1

    def test_cannot_pay_cancelled_order(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        OrderService(cashier_a).cancel_order(order.id)

        with pytest.raises(ConflictError, match="Cannot pay a cancelled order"):
            PaymentService(cashier_a).pay(order.id, "CARD")

    def test_unknown_provider(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        with pytest.raises(POSValidationError, match="not a valid payment provider"):
            PaymentService(cashier_a).pay(order.id, "BITCOIN")

    def test_paid_order_rejects_item_changes(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD")

        with pytest.raises(ConflictError) as exc_info:
            OrderItemService(cashier_a).add_item(order.id, product_pizza.id)
        assert exc_info.value.code == "order_closed"

    def test_payment_rows_are_immutable(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        payment = PaymentService(cashier_a).pay(order.id, "CARD").payment

        payment.amount_cents = 1
        with pytest.raises(ConflictError) as exc_info:
            payment.save()
        assert exc_info.value.code == "payment_immutable"


@pytest.mark.django_db
class TestCancellation:
    def test_cancel_open_order(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        order = OrderService(cashier_a).cancel_order(order.id)

        assert order.status == Order.OrderStatus.CANCELLED
        assert order.closed_at is not None

    def test_cannot_cancel_with_captured_payment(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD", amount_cents=100)

        with pytest.raises(ConflictError) as exc_info:
            OrderService(cashier_a).cancel_order(order.id)
        assert exc_info.value.code == "order_has_payments"

    def test_cannot_cancel_twice(self, cashier_a):
        order = open_order(cashier_a)
        OrderService(cashier_a).cancel_order(order.id)
        with pytest.raises(ConflictError, match="can no longer be modified"):
            OrderService(cashier_a).cancel_order(order.id)


@pytest.mark.django_db
class TestVoidsAndRefunds:
    """Item voids for any staff; full voids and refunds need a manager."""

    def test_item_void_by_cashier(self, cashier_a, product_pizza, product_burger):
        items = OrderItemService(cashier_a)
        order = items.add_item(open_order(cashier_a).id, product_pizza.id)
        order = items.add_item(order.id, product_burger.id)
        pizza = first_item(order)

        record = VoidRefundService(cashier_a).record(
            order.id, "ITEM_VOID", "dropped on floor", item_ids=[pizza.id]
        )

        order.refresh_from_db()
        pizza.refresh_from_db()
        assert pizza.status == OrderItem.ItemStatus.VOID
        assert order.subtotal_cents == 500
        assert record.amount_cents == 1000
        assert record.approved_by is None
        assert list(record.items.all()) == [pizza]

    def test_item_void_cannot_remove_everything(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        with pytest.raises(ConflictError) as exc_info:
            VoidRefundService(cashier_a).record(
                order.id, "ITEM_VOID", "wrong order", item_ids=[first_item(order).id]
            )
        assert exc_info.value.code == "last_billable_item"
        assert not VoidRefund.objects.exists()

    def test_full_void_needs_manager(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        with pytest.raises(PermissionDeniedError, match="Manager approval required"):
            VoidRefundService(cashier_a).record(order.id, "VOID", "walkout")

    def test_manager_void_cancels_unpaid_order(self, cashier_a, manager_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        record = VoidRefundService(manager_a).record(order.id, "VOID", "walkout")

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELLED
        assert record.approved_by == manager_a.user_id

    def test_void_on_paid_order_only_records(self, cashier_a, manager_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD")

        VoidRefundService(manager_a).record(order.id, "VOID", "comped after the fact")
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.PAID

    def test_refund_requires_paid_order(self, cashier_a, manager_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        with pytest.raises(ConflictError) as exc_info:
            VoidRefundService(manager_a).record(order.id, "REFUND", "cold food")
        assert exc_info.value.code == "order_not_paid"

    def test_full_refund_defaults_to_captured(self, cashier_a, manager_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD")

        record = VoidRefundService(manager_a).record(order.id, "REFUND", "cold food")
        assert record.amount_cents == 1050

    def test_refunds_capped_at_captured(self, cashier_a, manager_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD")
        voids = VoidRefundService(manager_a)

        voids.record(order.id, "PARTIAL_REFUND", "missing side", amount_cents=1000)
        with pytest.raises(ConflictError) as exc_info:
            voids.record(order.id, "PARTIAL_REFUND", "again", amount_cents=51)
        assert exc_info.value.code == "refund_exceeds_captured"
        assert exc_info.value.details == {"refundable_cents": 50}

    def test_reason_required(self, manager_a, cashier_a):
        order = open_order(cashier_a)
        with pytest.raises(POSValidationError, match="A reason is required"):
            VoidRefundService(manager_a).record(order.id, "VOID", "   ")


@pytest.mark.django_db
class TestTips:
    def test_tips_accumulate_outside_total(self, cashier_a, product_pizza):
        order = OrderItemService(cashier_a).add_item(open_order(cashier_a).id, product_pizza.id)
        PaymentService(cashier_a).pay(order.id, "CARD")
        tips = TipService(cashier_a)

        tips.add_tip(order.id, 200)
        tips.add_tip(order.id, 150, employee_id=uuid.uuid4())

        order.refresh_from_db()
        assert order.tip_cents == 350
        assert order.total_cents == 1050

    def test_tip_must_be_positive(self, cashier_a):
        order = open_order(cashier_a)
        with pytest.raises(POSValidationError):
            TipService(cashier_a).add_tip(order.id, 0)

    def test_cancelled_order_cannot_be_tipped(self, cashier_a):
        order = open_order(cashier_a)
        OrderService(cashier_a).cancel_order(order.id)
        with pytest.raises(ConflictError, match="Cannot tip a cancelled order"):
            TipService(cashier_a).add_tip(order.id, 100)


@pytest.mark.django_db
class TestSplitPlan:
    """Split plans divide the outstanding balance without writing anything."""

    def _order(self, actor, product_pizza, product_soda):
        items = OrderItemService(actor)
        order = items.add_item(open_order(actor).id, product_pizza.id)
        # 1000 + 250 = 1250, tax 62.5 -> 63, total 1313
        return items.add_item(order.id, product_soda.id)

    def test_equal_split_first_share_takes_odd_cents(self, cashier_a, product_pizza, product_soda):
        order = self._order(cashier_a, product_pizza, product_soda)
        plan = PaymentService(cashier_a).plan_split(order.id, "equal", parts=3)

        assert plan.total_cents == 1313
        assert plan.outstanding_cents == 1313
        assert plan.shares == [439, 437, 437]

    def test_split_uses_outstanding_balance(self, cashier_a, product_pizza, product_soda):
        order = self._order(cashier_a, product_pizza, product_soda)
        PaymentService(cashier_a).pay(order.id, "CARD", amount_cents=313)

        plan = PaymentService(cashier_a).plan_split(order.id, "equal", parts=2)
        assert plan.outstanding_cents == 1000
        assert plan.shares == [500, 500]

    def test_amount_split_must_match(self, cashier_a, product_pizza, product_soda):
        order = self._order(cashier_a, product_pizza, product_soda)
        service = PaymentService(cashier_a)

        plan = service.plan_split(order.id, "amount", amounts=[1000, 313])
        assert plan.shares == [1000, 313]

        with pytest.raises(POSValidationError, match="expected 1313, got 1300"):
            service.plan_split(order.id, "amount", amounts=[1000, 300])

    def test_parts_out_of_range(self, cashier_a, product_pizza, product_soda):
        order = self._order(cashier_a, product_pizza, product_soda)
        with pytest.raises(POSValidationError, match="between 2 and 20"):
            PaymentService(cashier_a).plan_split(order.id, "equal", parts=1)

    def test_split_writes_nothing(self, cashier_a, product_pizza, product_soda):
        order = self._order(cashier_a, product_pizza, product_soda)
        PaymentService(cashier_a).plan_split(order.id, "equal", parts=4)
        assert not Payment.objects.filter(order=order).exists()
