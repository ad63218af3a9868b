"""
Cash session and shift summary tests.

A session is the cash drawer's life between opening float and closing
count. Closing reconciles the count against the float plus cash taken;
the shift summary reports on the orders the session saw.
"""
from datetime import timedelta

import pytest

from cash_sessions.models import CashSession, ShiftSummary
from cash_sessions.services import (
    CashSessionQuery,
    CashSessionService,
    ShiftSummaryService,
    expected_cash_cents,
)
from core_backend.exceptions import ConflictError, NotFoundError, POSValidationError
from orders.services.item_service import OrderItemService
from orders.services.order_service import OrderService
from orders.services.tip_service import TipService
from orders.services.void_service import VoidRefundService
from payments.services import PaymentService


def paid_order(actor, products, provider, amount_cents=None):
    order, _ = OrderService(actor).create_order()
    items = OrderItemService(actor)
    for product in products:
        order = items.add_item(order.id, product.id)
    return PaymentService(actor).pay(order.id, provider, amount_cents=amount_cents).order


@pytest.mark.django_db
class TestCashSessionLifecycle:
    """One open session per tenant; closing is final."""

    def test_open_session(self, cashier_a, tenant_a):
        session = CashSessionService(cashier_a).open_session(10000, notes="morning")

        assert session.status == CashSession.SessionStatus.OPEN
        assert session.tenant == tenant_a
        assert session.opening_cash_cents == 10000
        assert session.opened_by == cashier_a.user_id
        assert CashSessionService(cashier_a).current_session() == session

    def test_second_open_session_rejected(self, cashier_a):
        service = CashSessionService(cashier_a)
        service.open_session(10000)

        with pytest.raises(ConflictError, match="already an open cash session") as exc_info:
            service.open_session(5000)
        assert exc_info.value.code == "cash_session_open"

    def test_tenants_have_separate_drawers(self, cashier_a, cashier_b):
        CashSessionService(cashier_a).open_session(10000)
        session_b = CashSessionService(cashier_b).open_session(2000)

        assert CashSessionService(cashier_b).current_session() == session_b

    def test_negative_float_rejected(self, cashier_a):
        with pytest.raises(POSValidationError, match="opening_cash_cents"):
            CashSessionService(cashier_a).open_session(-1)

    def test_close_with_no_sales(self, cashier_a):
        service = CashSessionService(cashier_a)
        session = service.open_session(10000)

        session = service.close_session(session.id, 9900, closing_notes="short a dollar")

        assert session.status == CashSession.SessionStatus.CLOSED
        assert session.expected_cash_cents == 10000
        assert session.cash_difference_cents == -100
        assert session.closed_at is not None
        assert session.closed_by == cashier_a.user_id
        assert service.current_session() is None

    def test_close_twice_rejected(self, cashier_a):
        service = CashSessionService(cashier_a)
        session = service.open_session(0)
        service.close_session(session.id, 0)

        with pytest.raises(ConflictError) as exc_info:
            service.close_session(session.id, 0)
        assert exc_info.value.code == "cash_session_closed"

    def test_reopen_after_close(self, cashier_a):
        service = CashSessionService(cashier_a)
        first = service.open_session(100)
        service.close_session(first.id, 100)

        second = service.open_session(200)
        assert second.id != first.id

        closed = service.list_sessions(CashSessionQuery(status="CLOSED"))
        assert [session.id for session in closed] == [first.id]

    def test_other_tenants_session_not_found(self, cashier_a, cashier_b):
        session = CashSessionService(cashier_b).open_session(100)
        with pytest.raises(NotFoundError, match="Cash session not found"):
            CashSessionService(cashier_a).close_session(session.id, 100)


@pytest.mark.django_db
class TestCashReconciliation:
    """expected = opening float + captured cash taken while the session was open."""

    def test_expected_includes_only_cash(self, cashier_a, product_pizza, product_soda):
        service = CashSessionService(cashier_a)
        session = service.open_session(10000)
        # Cash captures 1050 even though 2000 was handed over
        paid_order(cashier_a, [product_pizza], "CASH", amount_cents=2000)
        paid_order(cashier_a, [product_soda], "CARD")

        session = service.close_session(session.id, 11050)

        assert session.expected_cash_cents == 11050
        assert session.cash_difference_cents == 0

    def test_cash_taken_before_opening_is_excluded(self, cashier_a, product_pizza):
        paid_order(cashier_a, [product_pizza], "CASH")
        service = CashSessionService(cashier_a)
        session = service.open_session(500)

        session = service.close_session(session.id, 600)

        assert session.expected_cash_cents == 500
        assert session.cash_difference_cents == 100

    def test_other_tenants_cash_is_excluded(self, cashier_a, cashier_b, product_tenant_b):
        service = CashSessionService(cashier_a)
        session = service.open_session(1000)
        paid_order(cashier_b, [product_tenant_b], "CASH")

        session = service.close_session(session.id, 1000)
        assert session.expected_cash_cents == 1000

    def test_cash_taken_at_closing_instant_is_excluded(self, cashier_a, product_pizza):
        session = CashSessionService(cashier_a).open_session(10000)
        payment = paid_order(cashier_a, [product_pizza], "CASH").payments.get()

        assert expected_cash_cents(session, payment.created_at, "default") == 10000
        assert expected_cash_cents(session, payment.created_at + timedelta(microseconds=1), "default") == 11050


@pytest.mark.django_db
class TestShiftSummary:
    """The summary covers PAID and CANCELLED orders opened during the session."""

    def _run_shift(self, cashier, manager, product_pizza, product_burger, product_soda):
        session = CashSessionService(cashier).open_session(10000)

        # 1000 + tax 50 = 1050, paid cash
        cash_order = paid_order(cashier, [product_pizza], "CASH", amount_cents=2000)
        TipService(cashier).add_tip(cash_order.id, 100)

        # 500 + 250 = 750, tax 37.5 -> 38, total 788, paid card
        card_order = paid_order(cashier, [product_burger, product_soda], "CARD")
        VoidRefundService(manager).record(card_order.id, "PARTIAL_REFUND", "cold fries", amount_cents=50)

        cancelled, _ = OrderService(cashier).create_order()
        OrderService(cashier).cancel_order(cancelled.id)

        # Still open: not part of the summary
        open_order, _ = OrderService(cashier).create_order()
        OrderItemService(cashier).add_item(open_order.id, product_pizza.id)
        return session

    def test_summary_totals(self, cashier_a, manager_a, product_pizza, product_burger, product_soda):
        session = self._run_shift(cashier_a, manager_a, product_pizza, product_burger, product_soda)

        summary = ShiftSummaryService(cashier_a).summarize(session.id)

        assert summary.total_sales_cents == 1838
        assert summary.total_tax_cents == 88
        assert summary.total_discount_cents == 0
        assert summary.total_tips_cents == 100
        assert summary.total_refunds_cents == 50
        assert summary.cash_payments_cents == 1050
        assert summary.card_payments_cents == 788
        assert summary.other_payments_cents == 0
        assert summary.order_count == 2
        assert summary.cancelled_order_count == 1
        assert summary.item_count == 3
        assert summary.void_count == 0
        assert summary.average_order_cents == 919
        assert summary.expected_cash_cents == 11050
        assert summary.period_start == session.opened_at

    def test_summary_of_closed_session_ends_at_close(self, cashier_a, manager_a, product_pizza, product_burger, product_soda):
        session = self._run_shift(cashier_a, manager_a, product_pizza, product_burger, product_soda)
        session = CashSessionService(cashier_a).close_session(session.id, 11050)

        # Sold after the drawer closed
        paid_order(cashier_a, [product_soda], "CASH")

        summary = ShiftSummaryService(cashier_a).summarize(session.id)
        assert summary.period_end == session.closed_at
        assert summary.order_count == 2
        assert summary.expected_cash_cents == 11050

    def test_empty_shift(self, cashier_a):
        session = CashSessionService(cashier_a).open_session(0)
        summary = ShiftSummaryService(cashier_a).summarize(session.id)

        assert summary.total_sales_cents == 0
        assert summary.order_count == 0
        assert summary.average_order_cents == 0

    def test_snapshot_is_replaced(self, cashier_a, product_pizza):
        session = CashSessionService(cashier_a).open_session(0)
        service = ShiftSummaryService(cashier_a)

        first = service.save_snapshot(session.id)
        assert first.order_count == 0

        paid_order(cashier_a, [product_pizza], "CARD")
        second = service.save_snapshot(session.id)

        assert second.id == first.id
        assert second.order_count == 1
        assert second.total_sales_cents == 1050
        assert ShiftSummary.objects.filter(cash_session=session).count() == 1
