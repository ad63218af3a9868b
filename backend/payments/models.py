from dataclasses import dataclass
from typing import Optional
import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core_backend.exceptions import ConflictError
from tenant.managers import TenantManager


@dataclass(frozen=True)
class CashTender:
    """What the customer handed over for a cash payment."""

    received_cents: int
    change_due_cents: int


class Payment(models.Model):
    """
    One captured payment against an order.

    Payments are append-only: once saved they are never edited.
    """

    class Provider(models.TextChoices):
        CASH = "CASH", _("Cash")
        CARD = "CARD", _("Card")
        BANK = "BANK", _("Bank Transfer")
        PAYPAL = "PAYPAL", _("PayPal")

    class PaymentStatus(models.TextChoices):
        CAPTURED = "CAPTURED", _("Captured")
        # Reserved for gateway integrations.
        PENDING = "PENDING", _("Pending")
        AUTHORIZED = "AUTHORIZED", _("Authorized")
        FAILED = "FAILED", _("Failed")
        REFUNDED = "REFUNDED", _("Refunded")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    order = models.ForeignKey(
        "orders.Order", on_delete=models.PROTECT, related_name="payments"
    )
    provider = models.CharField(max_length=20, choices=Provider.choices)
    status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.CAPTURED
    )
    amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="USD")

    # Cash tender details; both set for CASH payments, both null otherwise.
    received_cents = models.PositiveIntegerField(null=True, blank=True)
    change_due_cents = models.PositiveIntegerField(null=True, blank=True)

    processor_reference = models.CharField(max_length=100, blank=True)
    created_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = TenantManager()

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["tenant", "status", "provider", "created_at"], name="payment_ten_report_idx"),
            models.Index(fields=["tenant", "order"], name="payment_ten_order_idx"),
        ]

    def __str__(self):
        return f"{self.get_provider_display()} {self.amount_cents} on {self.order_id}"

    @property
    def cash_tender(self) -> Optional[CashTender]:
        if self.received_cents is None:
            return None
        return CashTender(
            received_cents=self.received_cents,
            change_due_cents=self.change_due_cents or 0,
        )

    def clean(self):
        super().clean()
        has_tender = self.received_cents is not None or self.change_due_cents is not None
        if has_tender and self.provider != self.Provider.CASH:
            raise ValidationError("Only cash payments carry tender details.")
        if (self.received_cents is None) != (self.change_due_cents is None):
            raise ValidationError("received_cents and change_due_cents are set together.")
        if self.received_cents is not None and (
            self.received_cents != self.amount_cents + self.change_due_cents
        ):
            raise ValidationError("received_cents must equal amount_cents + change_due_cents.")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ConflictError("Payments cannot be modified once recorded", code="payment_immutable")
        self.clean_fields(exclude=["tenant", "order"])
        self.clean()
        super().save(*args, **kwargs)
