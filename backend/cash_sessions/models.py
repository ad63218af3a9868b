import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class CashSession(models.Model):
    """
    One cash drawer shift: opened with a float, closed with a count.
    """

    class SessionStatus(models.TextChoices):
        OPEN = "OPEN", _("Open")
        CLOSED = "CLOSED", _("Closed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="cash_sessions",
    )
    status = models.CharField(
        max_length=10, choices=SessionStatus.choices, default=SessionStatus.OPEN
    )
    currency = models.CharField(max_length=3, default="USD")

    opening_cash_cents = models.PositiveIntegerField()
    closing_cash_cents = models.PositiveIntegerField(null=True, blank=True)
    expected_cash_cents = models.PositiveIntegerField(null=True, blank=True)
    # Counted minus expected; negative means the drawer is short.
    cash_difference_cents = models.IntegerField(null=True, blank=True)

    notes = models.TextField(blank=True)
    closing_notes = models.TextField(blank=True)

    opened_by = models.UUIDField(null=True, blank=True)
    closed_by = models.UUIDField(null=True, blank=True)
    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-opened_at"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="cash_sess_ten_status_idx"),
            models.Index(fields=["tenant", "opened_at"], name="cash_sess_ten_opened_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant"],
                condition=models.Q(status="OPEN"),
                name="one_open_cash_session_per_tenant",
            )
        ]

    def __str__(self):
        return f"Cash session {self.opened_at:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_open(self):
        return self.status == self.SessionStatus.OPEN


class ShiftSummary(models.Model):
    """Saved snapshot of a session's shift summary."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="shift_summaries",
    )
    cash_session = models.OneToOneField(
        CashSession, on_delete=models.CASCADE, related_name="summary"
    )
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()

    total_sales_cents = models.PositiveIntegerField(default=0)
    total_tax_cents = models.PositiveIntegerField(default=0)
    total_discount_cents = models.PositiveIntegerField(default=0)
    total_tips_cents = models.PositiveIntegerField(default=0)
    total_refunds_cents = models.PositiveIntegerField(default=0)
    cash_payments_cents = models.PositiveIntegerField(default=0)
    card_payments_cents = models.PositiveIntegerField(default=0)
    other_payments_cents = models.PositiveIntegerField(default=0)
    order_count = models.PositiveIntegerField(default=0)
    cancelled_order_count = models.PositiveIntegerField(default=0)
    item_count = models.PositiveIntegerField(default=0)
    void_count = models.PositiveIntegerField(default=0)
    average_order_cents = models.PositiveIntegerField(default=0)
    expected_cash_cents = models.PositiveIntegerField(default=0)

    created_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-period_start"]
