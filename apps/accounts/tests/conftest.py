import pytest
from rest_framework.test import APIClient
from apps.accounts.models import User, UserRole
from apps.ledger.models import Agent


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def operator(db):
    """Create and return an operator login."""
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Operator',
    )


@pytest.fixture
def agent_login(db):
    """Create and return a login linked to a field agent."""
    agent = Agent.objects.create(
        name='Ravi Kumar',
        phone='9876543210',
        email='ravi@example.com',
        agent_code='agt001',
    )
    return User.objects.create_user(
        email='Ravi@Example.com',
        password='TestPass123!',
        role=UserRole.AGENT,
        agent=agent,
    )
