import pytest
from datetime import datetime, timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.ledger.models import Agent
from apps.shops.models import (
    AdminShop,
    AgentShop,
    Category,
    LegacyShop,
    PaymentStatus,
)
from apps.shops.services import Actor


# Patna city centre
PATNA = (25.5941, 85.1376)


def offset_km(origin, km_north):
    """Point roughly ``km_north`` kilometres due north of ``origin``."""
    return origin[0] + km_north / 111.195, origin[1]


def paid_window(days_ago=0):
    """(last_payment_date, payment_expiry_date) for a payment made ``days_ago``."""
    paid_at = timezone.now() - timedelta(days=days_ago)
    return paid_at, paid_at + timedelta(days=365)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def grocery(db):
    return Category.objects.create(name='Grocery', slug='grocery')


@pytest.fixture
def pharmacy(db):
    return Category.objects.create(name='Pharmacy', slug='pharmacy')


@pytest.fixture
def agent(db):
    """Create and return a field agent with empty totals."""
    return Agent.objects.create(
        name='Ravi Kumar',
        phone='9876543210',
        email='ravi@example.com',
        agent_code='agt001',
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
    """Create and return a back-office admin."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def operator_user(db):
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Operator',
        role=UserRole.OPERATOR,
    )


@pytest.fixture
def agent_user(db, agent):
    """Create and return a login linked to ``agent``."""
    return User.objects.create_user(
        email='ravi@example.com',
        password='TestPass123!',
        display_name='Ravi',
        role=UserRole.AGENT,
        agent=agent,
    )


@pytest.fixture
def admin_actor(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture
def agent_actor(agent_user):
    return Actor.from_user(agent_user)


@pytest.fixture
def other_agent_actor(other_agent):
    return Actor(actor_id=None, role=UserRole.AGENT, agent_id=other_agent.pk)


def _authenticate(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as an admin."""
    return _authenticate(api_client, admin_user)


@pytest.fixture
def operator_client(api_client, operator_user):
    return _authenticate(api_client, operator_user)


@pytest.fixture
def agent_client(api_client, agent_user):
    """Return API client authenticated as the agent's login."""
    return _authenticate(api_client, agent_user)


@pytest.fixture
def make_agent_shop(agent):
    """Factory for agent-store shops; PENDING unless told otherwise."""
    def _make(**kwargs):
        defaults = {
            'shop_name': 'Sharma General Store',
            'owner_name': 'Ramesh Sharma',
            'mobile': '9811111111',
            'category': 'Grocery',
            'pincode': '800001',
            'area': 'Boring Road',
            'address': '12 Boring Road',
            'district': 'Patna',
            'agent': agent,
        }
        defaults.update(kwargs)
        return AgentShop.objects.create(**defaults)
    return _make


@pytest.fixture
def make_admin_shop(db):
    """Factory for back-office shops; PENDING unless told otherwise."""
    def _make(**kwargs):
        defaults = {
            'shop_name': 'City Medicos',
            'owner_name': 'Anil Verma',
            'mobile': '9822222222',
            'category': 'Pharmacy',
            'full_address': '4 Fraser Road',
            'district': 'Patna',
        }
        defaults.update(kwargs)
        return AdminShop.objects.create(**defaults)
    return _make


@pytest.fixture
def make_legacy_shop(db):
    """Factory for legacy shops; payment status unset unless told otherwise."""
    def _make(**kwargs):
        defaults = {
            'name': 'Old Book House',
            'category': 'Grocery',
            'address': 'Ashok Rajpath',
            'district': 'Patna',
        }
        defaults.update(kwargs)
        return LegacyShop.objects.create(**defaults)
    return _make


@pytest.fixture
def paid_agent_shop(make_agent_shop):
    """An agent shop paid one year and one day ago, so already expired."""
    last_payment, expiry = paid_window(days_ago=366)
    return make_agent_shop(
        payment_status=PaymentStatus.PAID,
        amount=100,
        agent_commission=20,
        last_payment_date=last_payment,
        payment_expiry_date=expiry,
        created_at=last_payment,
    )


@pytest.fixture
def fixed_now():
    return timezone.make_aware(datetime(2025, 3, 1, 10, 30))
