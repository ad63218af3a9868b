"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like tenants, actors, products, tables and warehouses.
"""
import uuid
from decimal import Decimal

import pytest
from rest_framework_simplejwt.tokens import AccessToken

from core_backend.context import ActorContext, Role
from inventory.models import StockItem, Warehouse
from orders.models import DiningTable
from products.models import Category, Product
from tenant.models import Tenant


def make_actor(tenant, role, user_id=None):
    return ActorContext(tenant=tenant, user_id=user_id or uuid.uuid4(), role=role)


def issue_token(tenant, role, user_id=None):
    """A bearer token shaped like the ones the auth gateway issues."""
    token = AccessToken()
    token["user_id"] = str(user_id or uuid.uuid4())
    token["tenant_id"] = str(tenant.id)
    token["role"] = role
    return str(token)


def set_stock(tenant, warehouse, product, on_hand):
    stock, _ = StockItem.objects.update_or_create(
        tenant=tenant,
        warehouse=warehouse,
        product=product,
        defaults={"on_hand": on_hand},
    )
    return stock


# ============================================================================
# TENANT FIXTURES
# ============================================================================

@pytest.fixture
def tenant_a(db):
    """Create test tenant A (Pizza Place), 5% tax"""
    return Tenant.objects.create(
        name='Pizza Place',
        slug='pizza-place',
        currency='USD',
        tax_rate=Decimal('0.05'),
    )


@pytest.fixture
def tenant_b(db):
    """Create test tenant B (Burger Joint), 8% tax"""
    return Tenant.objects.create(
        name='Burger Joint',
        slug='burger-joint',
        currency='USD',
        tax_rate=Decimal('0.08'),
    )


@pytest.fixture
def suspended_tenant(db):
    """Create suspended test tenant"""
    return Tenant.objects.create(
        name='Closed Restaurant',
        slug='closed-restaurant',
        status=Tenant.TenantStatus.SUSPENDED,
    )


# ============================================================================
# ACTOR FIXTURES
# ============================================================================

@pytest.fixture
def owner_a(tenant_a):
    return make_actor(tenant_a, Role.OWNER)


@pytest.fixture
def manager_a(tenant_a):
    return make_actor(tenant_a, Role.MANAGER)


@pytest.fixture
def cashier_a(tenant_a):
    return make_actor(tenant_a, Role.CASHIER)


@pytest.fixture
def kitchen_a(tenant_a):
    return make_actor(tenant_a, Role.KITCHEN)


@pytest.fixture
def owner_b(tenant_b):
    return make_actor(tenant_b, Role.OWNER)


@pytest.fixture
def cashier_b(tenant_b):
    return make_actor(tenant_b, Role.CASHIER)


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def category_food(tenant_a):
    """Top-level category for tenant A"""
    return Category.objects.create(tenant=tenant_a, name='Food')


@pytest.fixture
def category_pizza(tenant_a, category_food):
    """Child of Food"""
    return Category.objects.create(tenant=tenant_a, name='Pizza', parent=category_food)


@pytest.fixture
def category_drinks(tenant_a):
    return Category.objects.create(tenant=tenant_a, name='Drinks')


@pytest.fixture
def product_pizza(tenant_a, category_pizza):
    """$10.00 pizza"""
    return Product.objects.create(
        tenant=tenant_a,
        name='Margherita',
        sku='PZ-001',
        price_cents=1000,
        category=category_pizza,
        track_inventory=True,
    )


@pytest.fixture
def product_burger(tenant_a, category_food):
    """$5.00 burger"""
    return Product.objects.create(
        tenant=tenant_a,
        name='Burger',
        sku='BG-001',
        price_cents=500,
        category=category_food,
    )


@pytest.fixture
def product_soda(tenant_a, category_drinks):
    """$2.50 soda"""
    return Product.objects.create(
        tenant=tenant_a,
        name='Soda',
        sku='SD-001',
        price_cents=250,
        category=category_drinks,
        track_inventory=True,
    )


@pytest.fixture
def product_tenant_b(tenant_b):
    return Product.objects.create(
        tenant=tenant_b,
        name='Cheeseburger',
        sku='CB-001',
        price_cents=800,
    )


@pytest.fixture
def table_a(tenant_a):
    return DiningTable.objects.create(tenant=tenant_a, name='T1', capacity=4)


@pytest.fixture
def table_b(tenant_b):
    return DiningTable.objects.create(tenant=tenant_b, name='T1', capacity=2)


# ============================================================================
# INVENTORY FIXTURES
# ============================================================================

@pytest.fixture
def warehouse_main(tenant_a):
    return Warehouse.objects.create(tenant=tenant_a, name='Main Store', code='MAIN')


@pytest.fixture
def warehouse_backup(tenant_a):
    return Warehouse.objects.create(tenant=tenant_a, name='Back Room', code='BACK')


@pytest.fixture
def warehouse_tenant_b(tenant_b):
    return Warehouse.objects.create(tenant=tenant_b, name='Main Store', code='MAIN')
