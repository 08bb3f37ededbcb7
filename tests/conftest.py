# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from main import create_app
from dependencies.auth import CurrentUser, get_authenticated_user, get_current_user


def make_user(user_id: str, roles: list, company_id: str = "company-1", company_type: str = "service", **extra) -> CurrentUser:
    return CurrentUser(
        id=user_id,
        email=f"{user_id}@example.com",
        roles=roles,
        primary_role=roles[0],
        first_name="Test",
        last_name=user_id.title(),
        company_id=company_id,
        company_type=company_type,
        **extra,
    )


@pytest.fixture(scope="function")
def app():
    """Create a test FastAPI application instance."""
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """
    Authenticate requests as the given user, e.g. `login(admin_user)`.
    Both the real and the effective identity are overridden.
    """
    def _login(user: CurrentUser):
        app.dependency_overrides[get_authenticated_user] = lambda: user
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
def director_user():
    return make_user("director", ["operations_director"], company_id=None, company_type=None)


@pytest.fixture
def admin_user():
    return make_user("admin", ["administrator"])


@pytest.fixture
def manager_user():
    return make_user("manager", ["manager"])


@pytest.fixture
def dispatcher_user():
    return make_user("dispatcher", ["dispatcher"])


@pytest.fixture
def engineer_user():
    return make_user("engineer", ["field_engineer"])


@pytest.fixture
def agent_user():
    return make_user("agent", ["field_agent"])


@pytest.fixture
def client_user():
    return make_user("customer", ["client"], company_id="client-co", company_type="client")


@pytest.fixture
def mock_supabase_client():
    """
    Mock Supabase client whose query builder methods all chain back to
    the same query object. Set `mock_client.query.execute.return_value`
    (or `.side_effect` for several queries) in the test.
    """
    mock_client = Mock()
    mock_query = Mock()
    for method in ("select", "insert", "update", "delete", "eq", "neq", "in_", "is_",
                   "contains", "order", "limit", "range"):
        getattr(mock_query, method).return_value = mock_query
    mock_client.table.return_value = mock_query
    mock_client.query = mock_query
    return mock_client


@pytest.fixture(autouse=True)
def reset_cache():
    """Reset cache, rate limits and role-testing sessions around each test."""
    from core.cache import cache_clear
    from core.rate_limiter import reset_rate_limits
    from services.impersonation import impersonation_service

    cache_clear()
    reset_rate_limits()
    impersonation_service.clear()
    yield
    cache_clear()
    reset_rate_limits()
    impersonation_service.clear()
