from dataclasses import dataclass
from typing import Iterable, Optional
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core_backend.context import TenantService
from core_backend.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    POSValidationError,
)
from orders.models import AppliedDiscount, Order
from orders.services.base import OrderAggregateService
from payments.money import format_money
from products.models import Category, Product
from tenant.managers import get_for_tenant
from .factories import DiscountStrategyFactory
from .models import Discount
from .strategies import applicable_subtotal_cents

logger = logging.getLogger(__name__)

MANUAL_DISCOUNT_TYPES = (Discount.DiscountType.PERCENTAGE, Discount.DiscountType.FIXED)


@dataclass(frozen=True)
class ManualDiscount:
    """An ad-hoc discount with no catalog entry."""

    name: str
    type: str
    value: int


class DiscountService(OrderAggregateService):
    """
    A service for applying and removing discounts on orders.
    This is the central point of control for all discount logic.
    """

    def apply_to_order(
        self,
        order_id,
        discount_id=None,
        code: Optional[str] = None,
        manual: Optional[ManualDiscount] = None,
    ) -> Order:
        """
        Apply a catalog discount (by id or code) or a manual discount.

        The amount is computed once and frozen on the AppliedDiscount row.
        """
        if manual is None and discount_id is None and not code:
            raise POSValidationError("Provide a discount id, a code or a manual discount")
        if manual is not None:
            self._validate_manual(manual)

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            items = list(
                order.items.using(self.using).select_related("product").order_by("created_at")
            )
            self._recalculate(order, items)

            if manual is not None:
                applied = AppliedDiscount(
                    tenant=self.tenant,
                    order=order,
                    discount=None,
                    name=manual.name,
                    type=manual.type,
                    value=manual.value,
                    amount_cents=self._amount_for(
                        manual.type, manual.value, Discount.DiscountScope.ORDER, items
                    ),
                    applied_by=self.actor.user_id,
                )
            else:
                discount = self._lock_catalog_discount(discount_id, code)
                self._check_eligibility(order, discount)
                applied = AppliedDiscount(
                    tenant=self.tenant,
                    order=order,
                    discount=discount,
                    name=discount.name,
                    type=discount.type,
                    value=discount.value,
                    amount_cents=self._amount_for(
                        discount.type,
                        discount.value,
                        discount.scope,
                        items,
                        product_ids=set(
                            discount.applicable_products.using(self.using).values_list("id", flat=True)
                        ),
                        category_ids=self._category_scope_ids(discount),
                    ),
                    applied_by=self.actor.user_id,
                )
                Discount.objects.using(self.using).filter(pk=discount.pk).update(
                    usage_count=F("usage_count") + 1
                )

            applied.save(using=self.using)
            self._recalculate(order, items)
            self._save(order)

        logger.info(
            f"Applied discount '{applied.name}' ({applied.amount_cents}) to order {order.order_number}"
        )
        return order

    def remove_from_order(self, order_id, applied_discount_id) -> Order:
        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            applied = get_for_tenant(
                AppliedDiscount.objects.using(self.using).filter(order=order),
                self.tenant,
                applied_discount_id,
                "Applied discount",
            )
            if applied.discount_id is not None:
                Discount.objects.using(self.using).filter(
                    pk=applied.discount_id, usage_count__gt=0
                ).update(usage_count=F("usage_count") - 1)
            applied.delete(using=self.using)

            self._recalculate(order, self._items(order))
            self._save(order)

        logger.info(f"Removed discount '{applied.name}' from order {order.order_number}")
        return order

    def _validate_manual(self, manual: ManualDiscount):
        if not self.actor.is_manager_or_higher:
            logger.warning(f"Manual discount rejected for role {self.actor.role}")
            raise PermissionDeniedError("Manager approval required for manual discounts")
        if manual.type not in MANUAL_DISCOUNT_TYPES:
            raise POSValidationError(
                "Manual discounts must be PERCENTAGE or FIXED", details={"field": "type"}
            )
        if not (manual.name or "").strip():
            raise POSValidationError("Manual discounts need a name", details={"field": "name"})
        if isinstance(manual.value, bool) or not isinstance(manual.value, int) or manual.value <= 0:
            raise POSValidationError(
                "Discount value must be a positive whole number", details={"field": "value"}
            )
        if (
            manual.type == Discount.DiscountType.PERCENTAGE
            and manual.value > Discount.MAX_PERCENTAGE_BASIS_POINTS
        ):
            raise POSValidationError(
                "Percentage discount cannot exceed 10000 basis points",
                details={"field": "value"},
            )

    def _lock_catalog_discount(self, discount_id, code) -> Discount:
        discounts = Discount.objects.using(self.using).select_for_update()
        if discount_id is not None:
            return get_for_tenant(discounts, self.tenant, discount_id, "Discount")
        discount = discounts.for_tenant(self.tenant).filter(code=code.strip().upper()).first()
        if discount is None:
            raise NotFoundError("Discount", message=f"Discount code '{code.strip().upper()}' not found")
        return discount

    def _check_eligibility(self, order: Order, discount: Discount):
        now = timezone.now()
        if not discount.is_active:
            raise ConflictError("Discount is not active", code="discount_inactive")
        if discount.start_date and now < discount.start_date:
            raise ConflictError("Discount is not yet active", code="discount_not_started")
        if discount.end_date and now > discount.end_date:
            raise ConflictError("Discount has expired", code="discount_expired")
        if discount.usage_limit_reached:
            raise ConflictError("Discount usage limit reached", code="discount_exhausted")
        if discount.min_order_cents and order.subtotal_cents < discount.min_order_cents:
            raise ConflictError(
                f"Minimum order of {format_money(order.currency, discount.min_order_cents)} required",
                code="discount_minimum_not_met",
                details={"min_order_cents": discount.min_order_cents},
            )
        already_applied = (
            order.applied_discounts.using(self.using).filter(discount=discount).exists()
        )
        if already_applied:
            raise ConflictError("Discount already applied to this order", code="discount_already_applied")

    def _category_scope_ids(self, discount: Discount) -> set:
        categories = discount.applicable_categories.using(self.using).all()
        if not categories:
            return set()
        return Category.objects.using(self.using).filter(
            pk__in=[category.pk for category in categories]
        ).with_descendant_ids()

    @staticmethod
    def _amount_for(discount_type, value, scope, items, product_ids=frozenset(), category_ids=frozenset()) -> int:
        applicable = applicable_subtotal_cents(items, scope, product_ids, category_ids)
        strategy = DiscountStrategyFactory.get_strategy(discount_type)
        return strategy.calculate(applicable, value)


class DiscountCatalogService(TenantService):
    """Create, edit and archive the tenant's discount catalog."""

    EDITABLE_FIELDS = (
        "name",
        "code",
        "type",
        "scope",
        "value",
        "min_order_cents",
        "start_date",
        "end_date",
        "max_usage_count",
    )

    def _discounts(self):
        return Discount.objects.using(self.using)

    def get_discount(self, discount_id) -> Discount:
        return get_for_tenant(self._discounts(), self.tenant, discount_id, "Discount")

    def list_discounts(self, include_archived: bool = False):
        discounts = self._discounts().for_tenant(self.tenant)
        if not include_archived:
            discounts = discounts.active()
        return discounts.prefetch_related("applicable_products", "applicable_categories")

    def available_discounts(self):
        """Active discounts whose validity window contains now and that have uses left."""
        now = timezone.now()
        return [
            discount
            for discount in self.list_discounts()
            if discount.is_currently_active(now) and not discount.usage_limit_reached
        ]

    def create_discount(
        self,
        product_ids: Iterable = (),
        category_ids: Iterable = (),
        **fields,
    ) -> Discount:
        self.actor.require_manager("manage discounts")
        discount = Discount(tenant=self.tenant)
        with transaction.atomic(using=self.using):
            self._assign(discount, fields)
            self._save_discount(discount)
            self._assign_scope(discount, product_ids, category_ids)

        logger.info(f"Created discount '{discount.name}' ({discount.type})")
        return discount

    def update_discount(
        self,
        discount_id,
        product_ids: Optional[Iterable] = None,
        category_ids: Optional[Iterable] = None,
        **fields,
    ) -> Discount:
        self.actor.require_manager("manage discounts")
        with transaction.atomic(using=self.using):
            discount = get_for_tenant(
                self._discounts().select_for_update(), self.tenant, discount_id, "Discount"
            )
            self._assign(discount, fields)
            self._save_discount(discount)
            if product_ids is not None or category_ids is not None:
                self._assign_scope(
                    discount,
                    product_ids if product_ids is not None else
                    discount.applicable_products.using(self.using).values_list("id", flat=True),
                    category_ids if category_ids is not None else
                    discount.applicable_categories.using(self.using).values_list("id", flat=True),
                )

        logger.info(f"Updated discount '{discount.name}'")
        return discount

    def archive_discount(self, discount_id) -> Discount:
        self.actor.require_manager("manage discounts")
        with transaction.atomic(using=self.using):
            discount = get_for_tenant(
                self._discounts().select_for_update(), self.tenant, discount_id, "Discount"
            )
            discount.archive(using=self.using)

        logger.info(f"Archived discount '{discount.name}'")
        return discount

    def _assign(self, discount: Discount, fields: dict):
        unknown = set(fields) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise POSValidationError(f"Unknown discount fields: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            if name == "code":
                value = value.strip().upper() if value else None
            setattr(discount, name, value)

        if discount.type not in Discount.DiscountType.values:
            raise POSValidationError(f"'{discount.type}' is not a valid discount type")
        if discount.scope not in Discount.DiscountScope.values:
            raise POSValidationError(f"'{discount.scope}' is not a valid discount scope")
        if not (discount.name or "").strip():
            raise POSValidationError("Discount name is required", details={"field": "name"})
        try:
            discount.clean()
        except DjangoValidationError as exc:
            messages = exc.message_dict
            raise POSValidationError(
                "; ".join(message for values in messages.values() for message in values),
                details=messages,
            )

    def _save_discount(self, discount: Discount):
        try:
            with transaction.atomic(using=self.using):
                discount.save(using=self.using)
        except IntegrityError:
            raise ConflictError(
                f"Discount code '{discount.code}' is already in use", code="discount_code_taken"
            )

    def _assign_scope(self, discount: Discount, product_ids, category_ids):
        product_ids = list(product_ids or [])
        category_ids = list(category_ids or [])
        products = list(
            Product.objects.using(self.using).for_tenant(self.tenant).filter(pk__in=product_ids)
        )
        categories = list(
            Category.objects.using(self.using).for_tenant(self.tenant).filter(pk__in=category_ids)
        )
        if len(products) != len(set(product_ids)):
            raise POSValidationError("One or more products were not found", details={"field": "product_ids"})
        if len(categories) != len(set(category_ids)):
            raise POSValidationError("One or more categories were not found", details={"field": "category_ids"})
        discount.applicable_products.set(products)
        discount.applicable_categories.set(categories)
