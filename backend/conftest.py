"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide an unauthenticated DRF API client.

    Usage:
        def test_health(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an API client carrying a gateway token for a tenant and role.

    Usage:
        def test_orders(client_for, tenant_a):
            client = client_for(tenant_a, 'CASHIER')
            response = client.get('/api/orders/')
    """
    from rest_framework.test import APIClient
    from core_backend.tests.fixtures import issue_token

    def _client(tenant, role, user_id=None):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(tenant, role, user_id)}")
        return client

    return _client


@pytest.fixture
def owner_client_a(client_for, tenant_a):
    return client_for(tenant_a, "OWNER")


@pytest.fixture
def cashier_client_a(client_for, tenant_a):
    return client_for(tenant_a, "CASHIER")


@pytest.fixture
def owner_client_b(client_for, tenant_b):
    return client_for(tenant_b, "OWNER")


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *  # noqa: E402,F401,F403
