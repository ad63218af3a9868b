from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core_backend.context import TenantService
from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import Order, OrderItem, VoidRefund
from payments.models import Payment
from payments.money import round_half_up
from tenant.managers import get_for_tenant
from .models import CashSession, ShiftSummary

logger = logging.getLogger(__name__)


def _validate_cents(value, field_name):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise POSValidationError(
            f"{field_name} must be a non-negative whole number of cents",
            details={"field": field_name},
        )


@dataclass(frozen=True)
class CashSessionQuery:
    status: Optional[str] = None
    opened_from: Optional[datetime] = None
    opened_to: Optional[datetime] = None


class CashSessionService(TenantService):
    """Open and close the tenant's cash drawer and reconcile the count."""

    def _sessions(self):
        return CashSession.objects.using(self.using)

    def get_session(self, session_id) -> CashSession:
        return get_for_tenant(self._sessions(), self.tenant, session_id, "Cash session")

    def current_session(self) -> Optional[CashSession]:
        return (
            self._sessions()
            .for_tenant(self.tenant)
            .filter(status=CashSession.SessionStatus.OPEN)
            .first()
        )

    def list_sessions(self, query: CashSessionQuery = CashSessionQuery()):
        sessions = self._sessions().for_tenant(self.tenant)
        if query.status:
            sessions = sessions.filter(status=query.status)
        if query.opened_from:
            sessions = sessions.filter(opened_at__gte=query.opened_from)
        if query.opened_to:
            sessions = sessions.filter(opened_at__lt=query.opened_to)
        return sessions.order_by("-opened_at")

    def open_session(self, opening_cash_cents: int, notes: str = "") -> CashSession:
        _validate_cents(opening_cash_cents, "opening_cash_cents")

        with transaction.atomic(using=self.using):
            if self.current_session() is not None:
                logger.warning(f"Tenant {self.tenant.slug} tried to open a second cash session")
                raise ConflictError(
                    "There is already an open cash session. Please close it first.",
                    code="cash_session_open",
                )
            session = CashSession(
                tenant=self.tenant,
                currency=self.tenant.currency,
                opening_cash_cents=opening_cash_cents,
                notes=notes or "",
                opened_by=self.actor.user_id,
            )
            try:
                with transaction.atomic(using=self.using):
                    session.save(using=self.using)
            except IntegrityError:
                raise ConflictError(
                    "There is already an open cash session. Please close it first.",
                    code="cash_session_open",
                )

        logger.info(f"Cash session {session.id} opened with {opening_cash_cents}")
        return session

    def close_session(self, session_id, closing_cash_cents: int, closing_notes: str = "") -> CashSession:
        """
        Close the drawer.

        expected = opening float + CAPTURED CASH payments taken since the
        session opened; difference = counted - expected.
        """
        _validate_cents(closing_cash_cents, "closing_cash_cents")

        with transaction.atomic(using=self.using):
            session = get_for_tenant(
                self._sessions().select_for_update(), self.tenant, session_id, "Cash session"
            )
            if not session.is_open:
                raise ConflictError("Session is already closed", code="cash_session_closed")

            closed_at = timezone.now()
            expected = expected_cash_cents(session, closed_at, self.using)
            session.status = CashSession.SessionStatus.CLOSED
            session.closing_cash_cents = closing_cash_cents
            session.expected_cash_cents = expected
            session.cash_difference_cents = closing_cash_cents - expected
            session.closing_notes = closing_notes or ""
            session.closed_by = self.actor.user_id
            session.closed_at = closed_at
            session.save(using=self.using)

        logger.info(
            f"Cash session {session.id} closed: expected={expected} counted={closing_cash_cents} "
            f"difference={session.cash_difference_cents}"
        )
        return session


def expected_cash_cents(session: CashSession, until: datetime, using) -> int:
    cash_taken = (
        Payment.objects.using(using)
        .filter(
            tenant_id=session.tenant_id,
            status=Payment.PaymentStatus.CAPTURED,
            provider=Payment.Provider.CASH,
            created_at__gte=session.opened_at,
            created_at__lt=until,
        )
        .aggregate(total=Sum("amount_cents"))["total"]
        or 0
    )
    return session.opening_cash_cents + cash_taken


@dataclass(frozen=True)
class ShiftSummaryData:
    period_start: datetime
    period_end: datetime
    total_sales_cents: int
    total_tax_cents: int
    total_discount_cents: int
    total_tips_cents: int
    total_refunds_cents: int
    cash_payments_cents: int
    card_payments_cents: int
    other_payments_cents: int
    order_count: int
    cancelled_order_count: int
    item_count: int
    void_count: int
    average_order_cents: int
    expected_cash_cents: int


class ShiftSummaryService(TenantService):
    """
    Read-only shift report over the orders a cash session saw.

    Orders count when they are PAID or CANCELLED and were opened in
    [session opened, session closed or now).
    """

    def summarize(self, session_id) -> ShiftSummaryData:
        session = get_for_tenant(
            CashSession.objects.using(self.using), self.tenant, session_id, "Cash session"
        )
        start = session.opened_at
        end = session.closed_at or timezone.now()

        orders = (
            Order.objects.using(self.using)
            .for_tenant(self.tenant)
            .filter(
                status__in=[Order.OrderStatus.PAID, Order.OrderStatus.CANCELLED],
                opened_at__gte=start,
                opened_at__lt=end,
            )
        )
        paid = orders.filter(status=Order.OrderStatus.PAID)

        sales = paid.aggregate(
            sales=Sum("total_cents"),
            tax=Sum("tax_cents"),
            discount=Sum("discount_cents"),
            tips=Sum("tip_cents"),
            count=Count("id"),
        )
        order_count = sales["count"] or 0
        total_sales = sales["sales"] or 0

        by_provider = (
            Payment.objects.using(self.using)
            .for_tenant(self.tenant)
            .filter(order__in=orders, status=Payment.PaymentStatus.CAPTURED)
            .aggregate(
                cash=Sum("amount_cents", filter=Q(provider=Payment.Provider.CASH)),
                card=Sum("amount_cents", filter=Q(provider=Payment.Provider.CARD)),
                other=Sum(
                    "amount_cents",
                    filter=~Q(provider__in=[Payment.Provider.CASH, Payment.Provider.CARD]),
                ),
            )
        )

        voids = (
            VoidRefund.objects.using(self.using)
            .for_tenant(self.tenant)
            .filter(order__in=orders)
            .aggregate(
                refunds=Sum(
                    "amount_cents",
                    filter=Q(type__in=[VoidRefund.VoidType.REFUND, VoidRefund.VoidType.PARTIAL_REFUND]),
                ),
                voids=Count(
                    "id",
                    filter=Q(type__in=[VoidRefund.VoidType.VOID, VoidRefund.VoidType.ITEM_VOID]),
                ),
            )
        )

        item_count = (
            OrderItem.objects.using(self.using)
            .for_tenant(self.tenant)
            .filter(order__in=paid)
            .exclude(status=OrderItem.ItemStatus.VOID)
            .aggregate(total=Sum("quantity"))["total"]
            or 0
        )

        return ShiftSummaryData(
            period_start=start,
            period_end=end,
            total_sales_cents=total_sales,
            total_tax_cents=sales["tax"] or 0,
            total_discount_cents=sales["discount"] or 0,
            total_tips_cents=sales["tips"] or 0,
            total_refunds_cents=voids["refunds"] or 0,
            cash_payments_cents=by_provider["cash"] or 0,
            card_payments_cents=by_provider["card"] or 0,
            other_payments_cents=by_provider["other"] or 0,
            order_count=order_count,
            cancelled_order_count=orders.filter(status=Order.OrderStatus.CANCELLED).count(),
            item_count=item_count,
            void_count=voids["voids"] or 0,
            average_order_cents=(
                round_half_up(Decimal(total_sales) / order_count) if order_count else 0
            ),
            expected_cash_cents=expected_cash_cents(session, end, self.using),
        )

    def save_snapshot(self, session_id) -> ShiftSummary:
        """Persist the current summary for the session, replacing any earlier snapshot."""
        session = get_for_tenant(
            CashSession.objects.using(self.using), self.tenant, session_id, "Cash session"
        )
        data = self.summarize(session.pk)
        with transaction.atomic(using=self.using):
            snapshot, _created = ShiftSummary.objects.using(self.using).update_or_create(
                tenant=self.tenant,
                cash_session=session,
                defaults={**asdict(data), "created_by": self.actor.user_id},
            )
        logger.info(f"Saved shift summary for cash session {session_id}")
        return snapshot
