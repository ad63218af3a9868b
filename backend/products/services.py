from typing import Optional
import logging

from django.db import IntegrityError, transaction

from core_backend.context import TenantService
from core_backend.exceptions import ConflictError, POSValidationError
from tenant.managers import get_for_tenant
from .models import Category, Product

logger = logging.getLogger(__name__)


class ProductService(TenantService):
    """Catalog maintenance. Reads are open to staff; writes need a manager."""

    def list_products(self, category_id=None, include_archived: bool = False):
        products = Product.objects.using(self.using).for_tenant(self.tenant)
        if not include_archived:
            products = products.active()
        if category_id:
            categories = Category.objects.using(self.using).for_tenant(self.tenant).filter(pk=category_id)
            products = products.filter(category_id__in=categories.with_descendant_ids())
        return products.select_related("category")

    def get_product(self, product_id) -> Product:
        return get_for_tenant(Product.objects.using(self.using), self.tenant, product_id, "Product")

    def create_product(
        self,
        name: str,
        price_cents: int,
        category_id=None,
        sku: str = "",
        track_inventory: bool = False,
    ) -> Product:
        self.actor.require_manager("manage products")
        product = Product(tenant=self.tenant)
        return self._save(product, name, price_cents, category_id, sku, track_inventory)

    def update_product(self, product_id, **fields) -> Product:
        self.actor.require_manager("manage products")
        product = self.get_product(product_id)
        return self._save(
            product,
            fields.get("name", product.name),
            fields.get("price_cents", product.price_cents),
            fields.get("category_id", product.category_id),
            fields.get("sku", product.sku),
            fields.get("track_inventory", product.track_inventory),
        )

    def archive_product(self, product_id) -> Product:
        self.actor.require_manager("manage products")
        product = self.get_product(product_id)
        product.archive(using=self.using)
        logger.info(f"Archived product {product.name}")
        return product

    def _save(self, product, name, price_cents, category_id, sku, track_inventory):
        name = (name or "").strip()
        if not name:
            raise POSValidationError("Product name is required", details={"field": "name"})
        if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents < 0:
            raise POSValidationError(
                "Price must be a non-negative whole number of cents", details={"field": "price_cents"}
            )
        product.name = name
        product.price_cents = price_cents
        product.sku = (sku or "").strip()
        product.track_inventory = bool(track_inventory)
        product.category = (
            get_for_tenant(Category.objects.using(self.using), self.tenant, category_id, "Category")
            if category_id
            else None
        )
        try:
            with transaction.atomic(using=self.using):
                product.save(using=self.using)
        except IntegrityError:
            raise ConflictError(f"SKU '{product.sku}' is already in use", code="sku_taken")
        logger.info(f"Saved product {product.name} ({product.price_cents})")
        return product


class CategoryService(TenantService):
    def list_categories(self, include_archived: bool = False):
        categories = Category.objects.using(self.using).for_tenant(self.tenant)
        if not include_archived:
            categories = categories.active()
        return categories

    def create_category(self, name: str, parent_id=None, order: int = 0) -> Category:
        self.actor.require_manager("manage categories")
        name = (name or "").strip()
        if not name:
            raise POSValidationError("Category name is required", details={"field": "name"})
        parent: Optional[Category] = None
        if parent_id:
            parent = get_for_tenant(
                Category.objects.using(self.using), self.tenant, parent_id, "Category"
            )
        category = Category(tenant=self.tenant, name=name, parent=parent, order=order)
        try:
            with transaction.atomic(using=self.using):
                category.save(using=self.using)
        except IntegrityError:
            raise ConflictError(f"Category '{name}' already exists here", code="category_exists")
        return category

    def archive_category(self, category_id) -> Category:
        """Archive a category and its whole subtree."""
        self.actor.require_manager("manage categories")
        with transaction.atomic(using=self.using):
            category = get_for_tenant(
                Category.objects.using(self.using), self.tenant, category_id, "Category"
            )
            Category.objects.using(self.using).for_tenant(self.tenant).filter(
                tree_id=category.tree_id,
                lft__gte=category.lft,
                rght__lte=category.rght,
            ).active().archive()
        logger.info(f"Archived category {category.name} and its descendants")
        category.refresh_from_db(using=self.using)
        return category
