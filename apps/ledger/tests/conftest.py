import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.ledger.models import Agent
from apps.shops.models import AgentShop, PaymentStatus


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def agent(db):
    """Create and return a field agent with empty totals."""
    return Agent.objects.create(
        name='Ravi Kumar',
        phone='9876543210',
        email='ravi@example.com',
        agent_code='AGT001',
    )


@pytest.fixture
def other_agent(db):
    return Agent.objects.create(
        name='Sunil Singh',
        phone='9123456780',
        email='sunil@example.com',
        agent_code='AGT002',
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def agent_user(db, agent):
    return User.objects.create_user(
        email='ravi@example.com',
        password='TestPass123!',
        display_name='Ravi',
        role=UserRole.AGENT,
        agent=agent,
    )


def _authenticate(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as an admin."""
    return _authenticate(api_client, admin_user)


@pytest.fixture
def agent_client(api_client, agent_user):
    return _authenticate(api_client, agent_user)


@pytest.fixture
def paid_at():
    """A payment instant in the middle of a Patna business day."""
    return timezone.now().replace(hour=6, minute=0, second=0, microsecond=0) - timedelta(days=3)


@pytest.fixture
def make_paid_shop(agent, paid_at):
    """Factory for PAID agent-store shops owned by ``agent``."""
    def _make(**kwargs):
        defaults = {
            'shop_name': 'Sharma General Store',
            'owner_name': 'Ramesh Sharma',
            'mobile': '9811111111',
            'category': 'Grocery',
            'pincode': '800001',
            'district': 'Patna',
            'agent': agent,
            'payment_status': PaymentStatus.PAID,
            'plan_type': 'BASIC',
            'amount': 100,
            'agent_commission': 20,
            'last_payment_date': paid_at,
            'payment_expiry_date': paid_at + timedelta(days=365),
        }
        defaults.update(kwargs)
        return AgentShop.objects.create(**defaults)
    return _make
